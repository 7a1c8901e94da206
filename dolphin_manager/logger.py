"""Loguru setup for the launcher, including Qt's own warnings."""

import sys
from pathlib import Path

from PySide6.QtCore import QtMsgType, qInstallMessageHandler
from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"

_QT_LEVELS = {
    QtMsgType.QtDebugMsg: "DEBUG",
    QtMsgType.QtInfoMsg: "INFO",
    QtMsgType.QtWarningMsg: "WARNING",
    QtMsgType.QtCriticalMsg: "ERROR",
    QtMsgType.QtFatalMsg: "CRITICAL",
}


def _qt_message_handler(msg_type, context, message: str) -> None:
    logger.log(_QT_LEVELS.get(msg_type, "INFO"), "[qt] {}", message)


def setup_logger(log_dir: Path | None = None, level: str | None = None) -> Path:
    """Send launcher and Qt log output to stderr and a rotating file.

    Parameters
    ----------
    log_dir : Path, optional
        Directory for ``launcher.log``.  Defaults to ``<data_dir>/logs``.
    level : str, optional
        Console level.  Defaults to the ``log_level`` setting; the file
        always gets ``DEBUG`` so Dolphin's own output is kept.

    Returns the log file path.
    """
    from dolphin_manager.config import Config
    cfg = Config()
    level = level or cfg.get("log_level", "INFO")

    logger.remove()
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT, colorize=True)

    log_dir = log_dir or cfg.data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "launcher.log"
    logger.add(
        str(log_file),
        level="DEBUG",
        format=_FILE_FORMAT,
        rotation="10 MB",
        retention="7 days",
        encoding="utf-8",
        enqueue=True,  # install worker logs from a QThread
    )

    qInstallMessageHandler(_qt_message_handler)
    logger.info("Logging to {} (console level {})", log_file, level)
    return log_file
