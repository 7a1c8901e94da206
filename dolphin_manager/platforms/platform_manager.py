"""Selects the platform strategy for the running OS."""

from __future__ import annotations

import platform

from loguru import logger

from dolphin_manager.errors import UnsupportedPlatformError
from dolphin_manager.platforms.base import PlatformStrategy
from dolphin_manager.platforms.linux import LinuxPlatform
from dolphin_manager.platforms.macos import MacPlatform
from dolphin_manager.platforms.windows import WindowsPlatform

_STRATEGIES: dict[str, type[PlatformStrategy]] = {
    "Windows": WindowsPlatform,
    "Darwin": MacPlatform,
    "Linux": LinuxPlatform,
}

_current: PlatformStrategy | None = None


def create_platform_strategy(system: str) -> PlatformStrategy:
    """Build the strategy for a ``platform.system()`` value."""
    cls = _STRATEGIES.get(system)
    if cls is None:
        raise UnsupportedPlatformError(
            f"Unsupported operating system: {system}", details={"system": system}
        )
    return cls()


def get_platform_strategy() -> PlatformStrategy:
    """Return the strategy for this machine, created on first use."""
    global _current
    if _current is None:
        _current = create_platform_strategy(platform.system())
        logger.info("Platform strategy: {}", _current.name)
    return _current
