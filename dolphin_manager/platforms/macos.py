"""macOS layout: everything lives inside ``Slippi Dolphin.app``."""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path

from loguru import logger

from dolphin_manager.errors import ExecutableNotFoundError
from dolphin_manager.models.dolphin import LaunchType
from dolphin_manager.platforms.base import LogFn, PlatformStrategy

APP_NAME = "Slippi Dolphin.app"


class MacPlatform(PlatformStrategy):

    @property
    def name(self) -> str:
        return "macOS"

    @property
    def release_key(self) -> str:
        return "darwin"

    def _resources(self, installation_folder: Path) -> Path:
        return installation_folder / APP_NAME / "Contents" / "Resources"

    def user_folder(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        return self._resources(installation_folder) / "User"

    def sys_folder(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        return self._resources(installation_folder) / "Sys"

    def find_executable(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        app = self._find_in_folder(
            installation_folder,
            lambda p: p.is_dir() and p.name.endswith("Dolphin.app"),
        )
        binary = app / "Contents" / "MacOS" / "Slippi Dolphin"
        if not binary.is_file():
            raise ExecutableNotFoundError(
                f"App bundle has no binary: {app}", details={"folder": str(app)}
            )
        return binary

    def install(
        self,
        asset_path: Path,
        destination_folder: Path,
        launch_type: LaunchType,
        log: LogFn,
    ) -> None:
        destination_folder.mkdir(parents=True, exist_ok=True)
        app_dest = destination_folder / APP_NAME
        # Lives until restored, whatever happens to the app copy
        backup = destination_folder / "User.backup"

        old_user = self.user_folder(destination_folder, launch_type)
        if old_user.exists():
            if backup.exists():
                shutil.rmtree(backup)
            log("Backing up User folder")
            shutil.move(str(old_user), str(backup))

        with tempfile.TemporaryDirectory() as tmp:
            mount_point = Path(tmp) / "mount"
            mount_point.mkdir()

            try:
                log(f"Mounting {asset_path.name}")
                subprocess.run(
                    ["hdiutil", "attach", "-nobrowse", "-readonly",
                     "-mountpoint", str(mount_point), str(asset_path)],
                    check=True, capture_output=True,
                )
                if app_dest.exists():
                    shutil.rmtree(app_dest)
                log(f"Copying {APP_NAME} to {destination_folder}")
                shutil.copytree(mount_point / APP_NAME, app_dest, symlinks=True)
            finally:
                subprocess.run(
                    ["hdiutil", "detach", str(mount_point)],
                    check=False, capture_output=True,
                )
                if backup.exists():
                    log("Restoring User folder")
                    self._copy_tree(backup, self.user_folder(destination_folder, launch_type))
                    shutil.rmtree(backup)
        logger.info("Installed {} Dolphin into {}", launch_type.value, destination_folder)
