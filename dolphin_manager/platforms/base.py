"""Abstract base class for per-OS Dolphin layout and install routines."""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from loguru import logger

from dolphin_manager.errors import ExecutableNotFoundError
from dolphin_manager.models.dolphin import LaunchType

LogFn = Callable[[str], None]


class PlatformStrategy(ABC):
    """Everything that differs between operating systems.

    One instance is selected at startup by
    :func:`dolphin_manager.platforms.platform_manager.get_platform_strategy`
    and shared by every :class:`DolphinInstallation`.

    Folder layout
    ~~~~~~~~~~~~~
    ``installation_folder`` is always the folder the launcher owns for a
    build.  Where ``User`` and ``Sys`` live relative to it is up to the
    platform; on Linux the user folder sits outside the installation, which
    is why :attr:`user_folder_outside_install` exists.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable platform name."""
        ...

    @property
    @abstractmethod
    def release_key(self) -> str:
        """Key of this platform in ``ReleaseInfo.download_urls``."""
        ...

    @property
    def user_folder_outside_install(self) -> bool:
        """Whether a clean install must remove the user folder separately."""
        return False

    @abstractmethod
    def user_folder(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        """Dolphin ``User`` directory (config, cache, saves)."""
        ...

    @abstractmethod
    def sys_folder(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        """Dolphin ``Sys`` directory (shipped resources)."""
        ...

    @abstractmethod
    def find_executable(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        """Return the Dolphin binary or raise :class:`ExecutableNotFoundError`."""
        ...

    @abstractmethod
    def install(
        self,
        asset_path: Path,
        destination_folder: Path,
        launch_type: LaunchType,
        log: LogFn,
    ) -> None:
        """Install a downloaded release asset into *destination_folder*."""
        ...

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _find_in_folder(folder: Path, predicate: Callable[[Path], bool]) -> Path:
        if not folder.is_dir():
            raise ExecutableNotFoundError(
                f"Dolphin folder does not exist: {folder}", details={"folder": str(folder)}
            )
        for child in sorted(folder.iterdir()):
            if predicate(child):
                logger.debug("Found Dolphin executable: {}", child)
                return child
        raise ExecutableNotFoundError(
            f"No Dolphin executable found in {folder}", details={"folder": str(folder)}
        )

    @staticmethod
    def _copy_tree(src: Path, dest: Path) -> None:
        """Copy *src* over *dest*, overwriting conflicting files."""
        dest.mkdir(parents=True, exist_ok=True)
        shutil.copytree(src, dest, dirs_exist_ok=True)
