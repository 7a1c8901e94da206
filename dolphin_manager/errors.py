"""Error types raised by the Dolphin manager.

Lower layers raise these and let the caller decide; nothing here is retried
automatically.  Each type also derives from the closest builtin so callers
can catch ``ValueError`` / ``OSError`` where that reads better.
"""

from __future__ import annotations

from typing import Any


class DolphinManagerError(Exception):
    """Base class for all launcher errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Structured form for logging."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgumentError(DolphinManagerError, ValueError):
    """Malformed caller input (missing spectate index, missing launch type)."""


class ExecutableNotFoundError(DolphinManagerError, FileNotFoundError):
    """No usable Dolphin binary for this platform / launch type."""


class UnsupportedPlatformError(DolphinManagerError):
    """The running OS has no paths, installer or download URL defined."""


class CommFileError(DolphinManagerError, OSError):
    """A comm file could not be written (usually already cleaned up)."""


class NetworkError(DolphinManagerError):
    """Release metadata fetch or asset download failed."""
