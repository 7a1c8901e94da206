"""Slippi Dolphin Manager entry point.

Usage::

    python main.py [replay.slp]

Validates (and if needed installs or updates) both Dolphin builds, applies
the launcher's settings to them, then plays *replay.slp* if one was given.
"""

import secrets
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QObject, Slot
from loguru import logger

from dolphin_manager.config import Config
from dolphin_manager.core.dolphin_manager import DolphinManager
from dolphin_manager.install.installation import get_installation
from dolphin_manager.install.worker import InstallWorker
from dolphin_manager.logger import setup_logger
from dolphin_manager.models.dolphin import LaunchType, ReplayCommunication, UseType


class _Controller(QObject):
    """Receives worker / registry signals on the main thread."""

    def __init__(self, app: QCoreApplication, config: Config, replay: Path | None) -> None:
        super().__init__()
        self._app = app
        self._cfg = config
        self._replay = replay
        self._installations = [
            get_installation(LaunchType.NETPLAY),
            get_installation(LaunchType.PLAYBACK),
        ]
        self._manager = DolphinManager.get_instance()
        self._manager.instance_closed.connect(self.on_instance_closed)

        self.worker = InstallWorker(self._installations)
        self.worker.log.connect(self.on_log)
        self.worker.finished_ok.connect(self.on_installed)
        self.worker.error.connect(self.on_install_error)

    @Slot(str)
    def on_log(self, message: str) -> None:
        logger.info("[install] {}", message)

    @Slot()
    def on_installed(self) -> None:
        for inst in self._installations:
            inst.update_settings(
                replay_path=self._cfg.root_slp_path,
                use_monthly_subfolders=self._cfg.use_monthly_subfolders,
            )
            if self._cfg.iso_path:
                inst.add_game_path(self._cfg.iso_path.parent)

        if self._replay is None:
            self._app.quit()
            return
        try:
            self._manager.launch_dolphin(
                UseType.PLAYBACK,
                replay_comm=ReplayCommunication(
                    mode="normal", replay=str(self._replay), command_id=secrets.token_hex(8)
                ),
            )
        except Exception as e:
            logger.error("Could not play {}: {}", self._replay, e)
            self._app.exit(1)

    @Slot(str)
    def on_install_error(self, message: str) -> None:
        logger.error("Dolphin installation failed: {}", message)
        self._app.exit(1)

    @Slot(str, int)
    def on_instance_closed(self, slot: str, index: int) -> None:
        if not self._manager.instances():
            logger.info("All Dolphin instances closed")
            self._app.quit()


def main() -> None:
    # ---- 1. Config ----
    config = Config()

    # ---- 2. Logger ----
    setup_logger()
    logger.info("Slippi Dolphin Manager starting…")

    # ---- 3. Qt event loop ----
    app = QCoreApplication(sys.argv)
    replay = Path(sys.argv[1]) if len(sys.argv) > 1 else None

    # ---- 4. Install, then launch ----
    controller = _Controller(app, config, replay)
    controller.worker.start()
    logger.info("Validating Dolphin installations, entering event loop")

    code = app.exec()
    controller.worker.wait()
    sys.exit(code)


if __name__ == "__main__":
    main()
