"""Data model for Dolphin release metadata and installation state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class InstallState(str, Enum):
    """Installation lifecycle of one Dolphin build."""

    ABSENT = "absent"
    DOWNLOADING = "downloading"
    INSTALLING = "installing"
    INSTALLED = "installed"


@dataclass
class ReleaseInfo:
    """Latest available Dolphin release for one launch type."""

    version: str
    """Semantic version string, without a leading ``v``."""

    download_urls: dict[str, str] = field(default_factory=dict)
    """Platform id (``win32``, ``darwin``, ``linux``) to asset URL."""

    def url_for(self, release_key: str) -> str | None:
        return self.download_urls.get(release_key)
