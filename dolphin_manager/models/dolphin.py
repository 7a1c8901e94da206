"""Data model for Dolphin instances and the replay communication payload."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from PySide6.QtCore import QProcess


class UseType(str, Enum):
    """Purpose of a running Dolphin instance."""

    PLAYBACK = "playback"
    SPECTATE = "spectate"
    NETPLAY = "netplay"
    CONFIG = "config"


class LaunchType(str, Enum):
    """Which Dolphin build is being managed."""

    NETPLAY = "netplay"
    PLAYBACK = "playback"


class InstanceSlot(str, Enum):
    """Registry slot.  Only ``SPECTATE`` holds more than one instance."""

    PLAYBACK = "playback"
    SPECTATE = "spectate"
    NETPLAY = "netplay"
    CONFIG_NETPLAY = "config_netplay"
    CONFIG_PLAYBACK = "config_playback"


SlotKey = tuple[InstanceSlot, Optional[int]]


@dataclass
class DolphinInstance:
    """One spawned Dolphin process, owned by the instance registry."""

    use_type: UseType
    """What the instance was launched for."""

    process: QProcess
    """The running process.  Only the registry signals or awaits it."""

    launch_type: LaunchType
    """Build the process was started from."""

    index: int | None = None
    """Broadcast source index, spectate instances only."""

    comm_file: Path | None = None
    """Comm file path, playback and spectate instances only."""

    closed: bool = False
    """Set once exit cleanup has run."""


# ---------------------------------------------------------------------------
# Replay communication payload
# ---------------------------------------------------------------------------

@dataclass
class ReplayQueueItem:
    """A single replay in a ``queue`` mode payload."""

    path: str
    start_frame: int | None = None
    end_frame: int | None = None
    game_start_at: str | None = None
    game_station: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path}
        if self.start_frame is not None:
            data["startFrame"] = self.start_frame
        if self.end_frame is not None:
            data["endFrame"] = self.end_frame
        if self.game_start_at is not None:
            data["gameStartAt"] = self.game_start_at
        if self.game_station is not None:
            data["gameStation"] = self.game_station
        return data

    @classmethod
    def from_dict(cls, data: dict) -> ReplayQueueItem:
        return cls(
            path=data.get("path", ""),
            start_frame=data.get("startFrame"),
            end_frame=data.get("endFrame"),
            game_start_at=data.get("gameStartAt"),
            game_station=data.get("gameStation"),
        )


@dataclass
class ReplayCommunication:
    """Command written into a comm file for Dolphin to pick up.

    The launcher does not check field combinations; Dolphin decides what
    it accepts.  ``to_dict`` produces the camelCase keys Dolphin reads.
    """

    mode: str = "normal"
    """``normal``, ``mirror`` or ``queue``."""

    replay: str | None = None
    """Replay path, used by ``normal`` and ``mirror``."""

    start_frame: int | None = None
    end_frame: int | None = None

    command_id: str | None = None
    """Opaque token, Dolphin reloads when it changes."""

    output_overlay_files: bool | None = None
    """Write ``gameStartAt`` / ``gameStation`` overlay files (queue mode)."""

    is_real_time_mode: bool = True
    """Stay close to real time (mirror mode)."""

    should_resync: bool = True
    rollback_display_method: str = "off"
    """``off``, ``normal`` or ``visible``."""

    queue: list[ReplayQueueItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"mode": self.mode}
        if self.replay is not None:
            data["replay"] = self.replay
        if self.start_frame is not None:
            data["startFrame"] = self.start_frame
        if self.end_frame is not None:
            data["endFrame"] = self.end_frame
        if self.command_id is not None:
            data["commandId"] = self.command_id
        if self.output_overlay_files is not None:
            data["outputOverlayFiles"] = self.output_overlay_files
        data["isRealTimeMode"] = self.is_real_time_mode
        data["shouldResync"] = self.should_resync
        data["rollbackDisplayMethod"] = self.rollback_display_method
        if self.queue:
            data["queue"] = [item.to_dict() for item in self.queue]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> ReplayCommunication:
        return cls(
            mode=data.get("mode", "normal"),
            replay=data.get("replay"),
            start_frame=data.get("startFrame"),
            end_frame=data.get("endFrame"),
            command_id=data.get("commandId"),
            output_overlay_files=data.get("outputOverlayFiles"),
            is_real_time_mode=data.get("isRealTimeMode", True),
            should_resync=data.get("shouldResync", True),
            rollback_display_method=data.get("rollbackDisplayMethod", "off"),
            queue=[ReplayQueueItem.from_dict(q) for q in data.get("queue", [])],
        )
