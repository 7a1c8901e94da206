"""Windows layout: portable Dolphin with ``User`` and ``Sys`` beside the exe."""

from __future__ import annotations

import shutil
import tempfile
import zipfile
from pathlib import Path

from loguru import logger

from dolphin_manager.models.dolphin import LaunchType
from dolphin_manager.platforms.base import LogFn, PlatformStrategy


class WindowsPlatform(PlatformStrategy):

    @property
    def name(self) -> str:
        return "Windows"

    @property
    def release_key(self) -> str:
        return "win32"

    def user_folder(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        return installation_folder / "User"

    def sys_folder(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        return installation_folder / "Sys"

    def find_executable(self, installation_folder: Path, launch_type: LaunchType) -> Path:
        return self._find_in_folder(
            installation_folder,
            lambda p: p.is_file() and p.name.endswith("Dolphin.exe"),
        )

    def install(
        self,
        asset_path: Path,
        destination_folder: Path,
        launch_type: LaunchType,
        log: LogFn,
    ) -> None:
        log(f"Extracting to: {destination_folder}")
        destination_folder.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(dir=destination_folder.parent) as tmp:
            extract_dir = Path(tmp)
            with zipfile.ZipFile(asset_path) as zf:
                zf.extractall(extract_dir)

            source = _release_root(extract_dir)

            # Old Sys files may not exist in the new release
            old_sys = self.sys_folder(destination_folder, launch_type)
            if old_sys.exists():
                shutil.rmtree(old_sys)

            self._copy_tree(source, destination_folder)
        logger.info("Installed {} Dolphin into {}", launch_type.value, destination_folder)


def _release_root(extract_dir: Path) -> Path:
    """Zips sometimes wrap everything in a single top-level folder."""
    children = list(extract_dir.iterdir())
    if len(children) == 1 and children[0].is_dir():
        return children[0]
    return extract_dir
