"""Launcher configuration management."""

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from loguru import logger


def _default_data_dir() -> Path:
    """Return the default data directory for the launcher."""
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / "Slippi Launcher"
    elif platform.system() == "Darwin":
        return Path.home() / "Library" / "Application Support" / "Slippi Launcher"
    else:
        return Path.home() / ".config" / "Slippi Launcher"


_DEFAULT_CONFIG: dict[str, Any] = {
    "iso_path": "",
    "netplay_dolphin_path": "",
    "playback_dolphin_path": "",
    "root_slp_path": "",
    "use_monthly_subfolders": False,
    "temp_dir": "",
    "log_level": "INFO",
    "release_urls": {
        "netplay": "https://api.github.com/repos/project-slippi/Ishiiruka/releases/latest",
        "playback": "https://api.github.com/repos/project-slippi/Ishiiruka-Playback/releases/latest",
    },
}


class Config:
    """Singleton launcher configuration."""

    _instance: Optional["Config"] = None
    _data: dict[str, Any]
    _path: Path
    _data_dir: Path

    def __new__(
        cls, config_path: Optional[Path] = None, data_dir: Optional[Path] = None
    ) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(
        self, config_path: Optional[Path] = None, data_dir: Optional[Path] = None
    ) -> None:
        if self._initialized:  # type: ignore[has-type]
            return
        self._initialized = True
        self._data_dir = data_dir or _default_data_dir()
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._path = config_path or (self._data_dir / "settings.json")
        self._data = json.loads(json.dumps(_DEFAULT_CONFIG))
        self._load()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def iso_path(self) -> Path | None:
        p = self._data.get("iso_path", "")
        return Path(p) if p else None

    @property
    def root_slp_path(self) -> Path:
        p = self._data.get("root_slp_path", "")
        if p:
            return Path(p)
        return Path.home() / "Slippi"

    @property
    def use_monthly_subfolders(self) -> bool:
        return bool(self._data.get("use_monthly_subfolders", False))

    @property
    def temp_dir(self) -> Path:
        """Scratch directory for comm files."""
        p = self._data.get("temp_dir", "")
        return Path(p) if p else Path(tempfile.gettempdir())

    @property
    def download_dir(self) -> Path:
        return self._data_dir / "temp"

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def get_dolphin_path(self, launch_type: str) -> Path:
        """Installation folder for the ``netplay`` or ``playback`` build."""
        p = self._data.get(f"{launch_type}_dolphin_path", "")
        if p:
            return Path(p)
        return self._data_dir / launch_type

    def set_dolphin_path(self, launch_type: str, path: Path | str) -> None:
        self._data[f"{launch_type}_dolphin_path"] = str(path)
        self._save()

    def get_release_url(self, launch_type: str) -> str:
        urls = self._data.get("release_urls", {})
        return urls.get(launch_type) or _DEFAULT_CONFIG["release_urls"][launch_type]

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if self._path.exists():
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    saved = json.load(f)
                self._data.update(saved)
                logger.info("Configuration loaded from {}", self._path)
            except (OSError, ValueError) as e:
                logger.warning("Failed to load config, using defaults: {}", e)

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=4, ensure_ascii=False)
        except OSError as e:
            logger.error("Failed to save config: {}", e)

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None
