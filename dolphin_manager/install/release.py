"""Latest Dolphin release lookup.

Reads the GitHub "latest release" JSON of the build's repository and maps
its assets onto the platform ids used by :class:`ReleaseInfo`:

    ``*.zip`` / "Windows" → ``win32``
    ``*.dmg`` / "Mac"     → ``darwin``
    ``*.AppImage``        → ``linux``
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request

from loguru import logger

from dolphin_manager.errors import NetworkError
from dolphin_manager.models.dolphin import LaunchType
from dolphin_manager.models.release import ReleaseInfo

USER_AGENT = "SlippiDolphinManager/0.1"


def _platform_for_asset(name: str) -> str | None:
    lower = name.lower()
    if lower.endswith(".appimage"):
        return "linux"
    if lower.endswith(".dmg") or ("mac" in lower and lower.endswith(".zip")):
        return "darwin"
    if lower.endswith(".zip"):
        return "win32"
    return None


def parse_release(data: dict) -> ReleaseInfo:
    """Build a :class:`ReleaseInfo` from a GitHub release document."""
    tag = str(data.get("tag_name") or data.get("name") or "").strip()
    if not tag:
        raise NetworkError("Release response has no version tag")
    version = tag[1:] if tag[:1] in ("v", "V") else tag

    urls: dict[str, str] = {}
    for asset in data.get("assets", []):
        key = _platform_for_asset(asset.get("name", ""))
        url = asset.get("browser_download_url")
        if key and url and key not in urls:
            urls[key] = url
    return ReleaseInfo(version=version, download_urls=urls)


def fetch_latest_version(launch_type: LaunchType, url: str | None = None) -> ReleaseInfo:
    """Fetch the latest release for *launch_type*.

    Raises :class:`NetworkError` if the request or the JSON fails.
    """
    if url is None:
        from dolphin_manager.config import Config
        url = Config().get_release_url(launch_type.value)

    logger.debug("Fetching latest {} Dolphin release from {}", launch_type.value, url)
    req = urllib.request.Request(
        url,
        headers={"User-Agent": USER_AGENT, "Accept": "application/vnd.github+json"},
    )
    try:
        with urllib.request.urlopen(req, timeout=15) as resp:
            data = json.loads(resp.read().decode("utf-8"))
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise NetworkError(
            f"Failed to fetch latest {launch_type.value} Dolphin version: {e}",
            details={"url": url},
        ) from e

    info = parse_release(data)
    logger.info("Latest {} Dolphin: v{}", launch_type.value, info.version)
    return info
