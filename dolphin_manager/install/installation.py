"""Dolphin installation manager: validate, update, install from scratch.

One :class:`DolphinInstallation` manages one build (netplay or playback) in
one installation folder.  Its state follows::

    ABSENT → DOWNLOADING → INSTALLING → INSTALLED
                 ↑                          │
                 └──────── (update) ────────┘

Installs are destructive and not transactional.  If one fails half way, the
state drops back to ``ABSENT`` and the next :meth:`validate` reinstalls.
"""

from __future__ import annotations

import re
import shutil
import subprocess
from pathlib import Path
from typing import Callable

import semver
from loguru import logger

from dolphin_manager.core.dolphin_ini import IniFile, add_game_path, set_slippi_settings
from dolphin_manager.errors import ExecutableNotFoundError, UnsupportedPlatformError
from dolphin_manager.install.download import download_asset
from dolphin_manager.install.release import fetch_latest_version
from dolphin_manager.models.dolphin import LaunchType
from dolphin_manager.models.release import InstallState, ReleaseInfo
from dolphin_manager.platforms.base import PlatformStrategy
from dolphin_manager.platforms.platform_manager import get_platform_strategy

LogFn = Callable[[str], None]

VERSION_PROBE_TIMEOUT = 10

_VERSION_RE = re.compile(r"v?(\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.+-]*)?)")


def parse_version(text: str) -> semver.Version:
    """Pull the version out of ``--version`` output, e.g. ``"3.4.1\\n"``."""
    match = _VERSION_RE.search(text)
    if match is None:
        raise ValueError(f"No version in output: {text!r}")
    return semver.Version.parse(match.group(1))


class DolphinInstallation:
    """Installation of one Dolphin build."""

    def __init__(
        self,
        launch_type: LaunchType,
        installation_folder: Path,
        platform: PlatformStrategy | None = None,
        release_fetcher: Callable[[LaunchType], ReleaseInfo] = fetch_latest_version,
        downloader: Callable[..., Path] = download_asset,
        download_dir: Path | None = None,
    ) -> None:
        self.launch_type = launch_type
        self.installation_folder = Path(installation_folder)
        self._platform = platform or get_platform_strategy()
        self._fetch_release = release_fetcher
        self._download = downloader
        self._download_dir = download_dir
        self._state = InstallState.ABSENT

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def user_folder(self) -> Path:
        return self._platform.user_folder(self.installation_folder, self.launch_type)

    @property
    def sys_folder(self) -> Path:
        return self._platform.sys_folder(self.installation_folder, self.launch_type)

    @property
    def ini_path(self) -> Path:
        return self.user_folder / "Config" / "Dolphin.ini"

    @property
    def download_dir(self) -> Path:
        if self._download_dir is not None:
            return self._download_dir
        from dolphin_manager.config import Config
        return Config().download_dir

    def find_executable(self) -> Path:
        """Return the Dolphin binary, or raise :class:`ExecutableNotFoundError`."""
        return self._platform.find_executable(self.installation_folder, self.launch_type)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> InstallState:
        if self._state == InstallState.ABSENT:
            try:
                self.find_executable()
                self._state = InstallState.INSTALLED
            except ExecutableNotFoundError:
                pass
        return self._state

    def _set_state(self, state: InstallState) -> None:
        if state != self._state:
            logger.debug(
                "{} Dolphin: {} -> {}", self.launch_type.value, self._state.value, state.value
            )
        self._state = state

    # ------------------------------------------------------------------
    # Validate / install
    # ------------------------------------------------------------------

    def installed_version(self) -> semver.Version:
        """Ask the installed binary for its version (short blocking call)."""
        exe = self.find_executable()
        result = subprocess.run(
            [str(exe), "--version"],
            capture_output=True,
            text=True,
            timeout=VERSION_PROBE_TIMEOUT,
            check=False,
        )
        return parse_version(result.stdout)

    def validate(self, log: LogFn = logger.info) -> None:
        """Make sure the latest Dolphin is installed, downloading if needed."""
        name = self.launch_type.value
        try:
            installed = self.installed_version()
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            # Missing or broken installs are reinstalled, not reported
            logger.debug("Installed {} Dolphin not usable: {}", name, e)
            log(f"Could not find {name} Dolphin installation. Downloading...")
            self.download_and_install(log=log)
            return

        log(f"Found existing {name} Dolphin executable.")
        log(f"Checking if we need to update {name} Dolphin")
        release = self._fetch_release(self.launch_type)
        latest = semver.Version.parse(release.version, optional_minor_and_patch=True)
        if installed >= latest:
            self._set_state(InstallState.INSTALLED)
            log("No update found...")
            return

        log(f"{name} Dolphin installation is outdated (v{installed} < v{latest}). Downloading latest...")
        self.download_and_install(release_info=release, log=log)

    def download_and_install(
        self,
        release_info: ReleaseInfo | None = None,
        log: LogFn = logger.info,
        clean_install: bool = False,
    ) -> None:
        """Download the latest release and install it over this installation."""
        name = self.launch_type.value
        if release_info is None:
            release_info = self._fetch_release(self.launch_type)

        key = self._platform.release_key
        url = release_info.url_for(key)
        if not url:
            raise UnsupportedPlatformError(
                f"Could not find latest Dolphin download url for {key}",
                details={"platform": key, "version": release_info.version},
            )

        last_percent = -1

        def on_progress(current: int, total: int) -> None:
            nonlocal last_percent
            if not total:
                return
            percent = int(current / total * 100)
            if percent != last_percent:
                last_percent = percent
                log(f"Downloading... {percent}%")

        self._set_state(InstallState.DOWNLOADING)
        try:
            asset = self._download(url, self.download_dir, on_progress, log)

            self._set_state(InstallState.INSTALLING)
            log(f"Installing v{release_info.version} {name} Dolphin...")
            if clean_install:
                self._uninstall(log)
            self._platform.install(asset, self.installation_folder, self.launch_type, log)
        except Exception:
            self._set_state(InstallState.ABSENT)
            raise

        asset.unlink(missing_ok=True)
        self._set_state(InstallState.INSTALLED)
        log(f"Finished v{release_info.version} {name} Dolphin install")

    def _uninstall(self, log: LogFn) -> None:
        if self.installation_folder.exists():
            log(f"Removing {self.installation_folder}")
            shutil.rmtree(self.installation_folder)
        if self._platform.user_folder_outside_install and self.user_folder.exists():
            log(f"Removing {self.user_folder}")
            shutil.rmtree(self.user_folder)

    # ------------------------------------------------------------------
    # Dolphin.ini
    # ------------------------------------------------------------------

    def add_game_path(self, game_dir: str | Path) -> None:
        add_game_path(IniFile.load(self.ini_path), game_dir)

    def update_settings(
        self,
        replay_path: str | Path | None = None,
        use_monthly_subfolders: bool | None = None,
    ) -> None:
        set_slippi_settings(
            IniFile.load(self.ini_path),
            replay_path=replay_path,
            use_monthly_subfolders=use_monthly_subfolders,
        )

    # ------------------------------------------------------------------
    # User folder maintenance
    # ------------------------------------------------------------------

    def import_config(self, from_path: str | Path) -> None:
        """Copy ``<from_path>/User`` over this installation's user folder."""
        old_user = Path(from_path) / "User"
        if not old_user.is_dir():
            logger.info("No user folder to import at {}", old_user)
            return
        self.user_folder.mkdir(parents=True, exist_ok=True)
        shutil.copytree(old_user, self.user_folder, dirs_exist_ok=True)
        logger.info("Imported Dolphin config from {} into {}", old_user, self.user_folder)

    def clear_cache(self) -> None:
        cache = self.user_folder / "Cache"
        if cache.exists():
            shutil.rmtree(cache)
        logger.info("Cleared {} Dolphin cache", self.launch_type.value)


# ---------------------------------------------------------------------------
# Shared installations
# ---------------------------------------------------------------------------

_installations: dict[LaunchType, DolphinInstallation] = {}


def get_installation(launch_type: LaunchType) -> DolphinInstallation:
    """Return the configured installation for *launch_type*."""
    inst = _installations.get(launch_type)
    if inst is None:
        from dolphin_manager.config import Config
        inst = DolphinInstallation(launch_type, Config().get_dolphin_path(launch_type.value))
        _installations[launch_type] = inst
    return inst
