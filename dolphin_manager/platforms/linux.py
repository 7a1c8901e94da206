"""Linux layout: an AppImage, with user data under ``~/.config``."""

from __future__ import annotations

import os
import shutil
import stat
from pathlib import Path

from loguru import logger

from dolphin_manager.models.dolphin import LaunchType
from dolphin_manager.platforms.base import LogFn, PlatformStrategy

_APPIMAGE_PREFIX = {
    LaunchType.NETPLAY: "Slippi_Online",
    LaunchType.PLAYBACK: "Slippi_Playback",
}

_USER_FOLDER_NAME = {
    LaunchType.NETPLAY: "SlippiOnline",
    LaunchType.PLAYBACK: "SlippiPlayback",
}


def _default_config_home() -> Path:
    env = os.environ.get("XDG_CONFIG_HOME")
    return Path(env) if env else Path.home() / ".config"


class LinuxPlatform(PlatformStrategy):
    """AppImage builds.

    *config_home* is where Dolphin keeps ``SlippiOnline`` / ``SlippiPlayback``
    and *data_dir* is the launcher's own data folder, which holds the
    extracted ``Sys`` directories.
    """

    def __init__(self, config_home: Path | None = None, data_dir: Path | None = None) -> None:
        self._config_home = config_home or _default_config_home()
        self._data_dir = data_dir

    @property
    def name(self) -> str:
        return "Linux"

    @property
    def release_key(self) -> str:
        return "linux"

    @property
    def user_folder_outside_install(self) -> bool:
        return True

    def user_folder(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        return self._config_home / _USER_FOLDER_NAME[launch_type]

    def sys_folder(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        data_dir = self._data_dir
        if data_dir is None:
            from dolphin_manager.config import Config
            data_dir = Config().data_dir
        return data_dir / launch_type.value / "Sys"

    def find_executable(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        prefix = _APPIMAGE_PREFIX[launch_type]
        return self._find_in_folder(
            installation_folder,
            lambda p: p.is_file() and p.name.startswith(prefix) and p.name.endswith(".AppImage"),
        )

    def install(
        self,
        asset_path: Path,
        destination_folder: Path,
        launch_type: LaunchType,
        log: LogFn,
    ) -> None:
        prefix = _APPIMAGE_PREFIX[launch_type]
        destination_folder.mkdir(parents=True, exist_ok=True)

        for old in destination_folder.glob(f"{prefix}*.AppImage"):
            log(f"Removing old AppImage {old.name}")
            old.unlink()

        target = destination_folder / asset_path.name
        if not target.name.startswith(prefix):
            target = destination_folder / f"{prefix}-{asset_path.name}"
        log(f"Copying AppImage to {target}")
        shutil.copy2(asset_path, target)
        mode = target.stat().st_mode
        target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        self.user_folder(destination_folder, launch_type).mkdir(parents=True, exist_ok=True)
        logger.info("Installed {} Dolphin into {}", launch_type.value, target)
