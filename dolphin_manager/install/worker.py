"""Background thread for validating / installing Dolphin builds."""

from __future__ import annotations

from PySide6.QtCore import QObject, QThread, Signal
from loguru import logger

from dolphin_manager.install.installation import DolphinInstallation


class InstallWorker(QThread):
    """Runs :meth:`DolphinInstallation.validate` (or a clean reinstall) for
    each given installation, one after the other.

    Log lines are re-emitted through :attr:`log` so a GUI can show them;
    they are delivered to receivers on their own thread by Qt.
    """

    log = Signal(str)
    finished_ok = Signal()
    error = Signal(str)

    def __init__(
        self,
        installations: list[DolphinInstallation],
        clean_install: bool = False,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._installations = list(installations)
        self._clean_install = clean_install

    def run(self) -> None:
        try:
            for inst in self._installations:
                if self._clean_install:
                    inst.download_and_install(log=self.log.emit, clean_install=True)
                else:
                    inst.validate(self.log.emit)
            self.finished_ok.emit()
        except Exception as e:
            logger.exception("Dolphin install failed")
            self.error.emit(str(e))
