"""Comm files: a one-way command channel into a running Dolphin.

Dolphin is started with ``-i <comm file>`` and polls that file for a JSON
:class:`ReplayCommunication`.  Rewriting the file redirects the running
instance; there is no queue, the last write wins.
"""

from __future__ import annotations

import json
import secrets
from pathlib import Path
from typing import Any

from loguru import logger

from dolphin_manager.errors import CommFileError
from dolphin_manager.models.dolphin import ReplayCommunication, UseType


class CommChannel:
    """Creates, writes and removes comm files in a scratch directory."""

    def __init__(self, temp_dir: Path | None = None) -> None:
        self._temp_dir = temp_dir

    @property
    def temp_dir(self) -> Path:
        if self._temp_dir is not None:
            return self._temp_dir
        from dolphin_manager.config import Config
        return Config().temp_dir

    def create(self, use_type: UseType) -> Path:
        """Create an empty comm file named after *use_type* and return it."""
        unique_id = secrets.token_hex(12)
        path = self.temp_dir / f"slippi-{use_type.value}-{unique_id}.txt"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=False)
        except OSError as e:
            raise CommFileError(
                f"Could not create comm file {path}: {e}", details={"path": str(path)}
            ) from e
        logger.debug("Created comm file {}", path)
        return path

    def write(self, path: Path, payload: ReplayCommunication | dict[str, Any]) -> None:
        """Overwrite *path* with *payload* as JSON.

        Raises :class:`CommFileError` if the file is gone, which means the
        instance it belonged to has already exited.
        """
        if not path.is_file():
            raise CommFileError(
                f"Comm file no longer exists: {path}", details={"path": str(path)}
            )
        data = payload.to_dict() if isinstance(payload, ReplayCommunication) else payload
        try:
            path.write_text(json.dumps(data), encoding="utf-8")
        except OSError as e:
            raise CommFileError(
                f"Could not write comm file {path}: {e}", details={"path": str(path)}
            ) from e
        logger.debug("Wrote comm file {}: {}", path.name, data)

    def destroy(self, path: Path) -> None:
        """Remove *path*; a file that is already gone is fine."""
        path.unlink(missing_ok=True)
        logger.debug("Removed comm file {}", path)
