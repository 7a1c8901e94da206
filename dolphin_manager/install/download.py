"""Release asset downloader."""

from __future__ import annotations

import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Callable

from loguru import logger

from dolphin_manager.errors import NetworkError
from dolphin_manager.install.release import USER_AGENT

CHUNK_SIZE = 64 * 1024


def _file_name(url: str) -> str:
    name = Path(urllib.parse.unquote(urllib.parse.urlparse(url).path)).name
    return name or "dolphin-download"


def download_asset(
    url: str,
    dest_dir: Path,
    on_progress: Callable[[int, int], None] | None = None,
    log: Callable[[str], None] = logger.info,
) -> Path:
    """Download *url* into *dest_dir* and return the file path.

    *on_progress* receives ``(bytes_so_far, total_bytes)``; ``total_bytes`` is
    0 when the server sends no length.  A partial file is removed on failure.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / _file_name(url)
    if dest.exists():
        dest.unlink()

    log(f"Downloading {url} to {dest}")
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=30) as resp, open(dest, "wb") as out:
            total = int(resp.headers.get("Content-Length") or 0)
            current = 0
            while True:
                chunk = resp.read(CHUNK_SIZE)
                if not chunk:
                    break
                out.write(chunk)
                current += len(chunk)
                if on_progress:
                    on_progress(current, total)
    except (urllib.error.URLError, OSError) as e:
        dest.unlink(missing_ok=True)
        raise NetworkError(f"Failed to download {url}: {e}", details={"url": url}) from e

    log(f"Received {dest.name} ({dest.stat().st_size} bytes)")
    return dest
