"""Dolphin.ini editing for game paths and launcher-controlled Slippi settings.

Every edit is a read-modify-write of the whole file: sections and keys the
launcher does not know about are written back untouched.  Dolphin's keys are
case-sensitive, so the parser keeps key case as-is.  Comment lines and bare
lines without ``=`` are carried along as value-less keys so they survive the
rewrite as well.
"""

from __future__ import annotations

import configparser
from pathlib import Path

from loguru import logger


class IniFile:
    """A loaded ``Dolphin.ini``."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._parser = configparser.ConfigParser(
            interpolation=None,
            strict=False,
            allow_no_value=True,
            comment_prefixes=(),
            delimiters=("=",),
        )
        self._parser.optionxform = str  # type: ignore[assignment,method-assign]

    @classmethod
    def load(cls, path: Path) -> IniFile:
        """Read *path*; a missing file gives an empty ini."""
        ini = cls(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.is_file():
            ini._parser.read(str(path), encoding="utf-8")
            logger.debug("Loaded {} ({} sections)", path, len(ini._parser.sections()))
        return ini

    def section(self, name: str) -> configparser.SectionProxy:
        """Get a section, creating it if needed."""
        if not self._parser.has_section(name):
            self._parser.add_section(name)
        return self._parser[name]

    def get(self, section: str, key: str, fallback: str | None = None) -> str | None:
        return self._parser.get(section, key, fallback=fallback)

    def sections(self) -> list[str]:
        return self._parser.sections()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            self._parser.write(f)
        logger.debug("Saved {}", self.path)


def add_game_path(ini: IniFile, game_dir: str | Path) -> None:
    """Add *game_dir* to Dolphin's game list folders if not already there."""
    general = ini.section("General")
    game_dir = str(game_dir)
    try:
        count = int(general.get("ISOPaths", "0"))
    except (TypeError, ValueError):
        count = 0

    existing = [general.get(f"ISOPath{i}") for i in range(count)]
    if game_dir in existing:
        logger.debug("Game path already present: {}", game_dir)
        return

    general[f"ISOPath{count}"] = game_dir
    general["ISOPaths"] = str(count + 1)
    ini.save()
    logger.info("Added game path {} to {}", game_dir, ini.path)


def set_slippi_settings(
    ini: IniFile,
    replay_path: str | Path | None = None,
    use_monthly_subfolders: bool | None = None,
) -> None:
    """Write the Slippi replay settings the launcher controls."""
    core = ini.section("Core")
    if replay_path is not None:
        core["SlippiReplayDir"] = str(replay_path)
    if use_monthly_subfolders is not None:
        core["SlippiReplayMonthFolders"] = "True" if use_monthly_subfolders else "False"
    ini.save()
    logger.info("Updated Slippi settings in {}", ini.path)
