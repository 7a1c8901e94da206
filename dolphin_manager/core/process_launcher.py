"""Starts Dolphin processes."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

from PySide6.QtCore import QObject, QProcess
from loguru import logger

from dolphin_manager.install.installation import DolphinInstallation, get_installation
from dolphin_manager.models.dolphin import LaunchType


class ProcessLauncher:
    """Builds Dolphin's command line and starts it as a :class:`QProcess`.

    The process is started asynchronously; Dolphin reports readiness on its
    own through the comm file, so nothing here waits for it.
    """

    def __init__(
        self,
        installation_for: Callable[[LaunchType], DolphinInstallation] = get_installation,
    ) -> None:
        self._installation_for = installation_for

    @staticmethod
    def build_args(comm_file: Path | None = None, extra_args: Sequence[str] | None = None) -> list[str]:
        args: list[str] = []
        if comm_file is not None:
            args += ["-i", str(comm_file)]
        if extra_args:
            args += list(extra_args)
        return args

    def prepare(
        self,
        launch_type: LaunchType,
        comm_file: Path | None = None,
        extra_args: Sequence[str] | None = None,
        parent: QObject | None = None,
    ) -> QProcess:
        """Build a ready-to-start process; raises :class:`ExecutableNotFoundError`.

        Callers that need to see every exit notification connect to the
        process signals before calling ``start()`` on it.
        """
        exe = self._installation_for(launch_type).find_executable()
        args = self.build_args(comm_file, extra_args)

        process = QProcess(parent)
        process.setProgram(str(exe))
        process.setArguments(args)
        process.setWorkingDirectory(str(exe.parent))
        process.readyReadStandardOutput.connect(
            lambda: _forward_output(process, QProcess.ProcessChannel.StandardOutput)
        )
        process.readyReadStandardError.connect(
            lambda: _forward_output(process, QProcess.ProcessChannel.StandardError)
        )
        logger.debug("Prepared {} Dolphin: {} {}", launch_type.value, exe, args)
        return process

    def start(
        self,
        launch_type: LaunchType,
        comm_file: Path | None = None,
        extra_args: Sequence[str] | None = None,
        parent: QObject | None = None,
    ) -> QProcess:
        """Start Dolphin without waiting for it to come up."""
        process = self.prepare(launch_type, comm_file, extra_args, parent)
        logger.info("Starting {} Dolphin: {}", launch_type.value, process.program())
        process.start()
        return process


def _forward_output(process: QProcess, channel: QProcess.ProcessChannel) -> None:
    process.setReadChannel(channel)
    while process.canReadLine():
        line = bytes(process.readLine().data()).decode("utf-8", errors="replace").rstrip()
        if line:
            logger.debug("[dolphin {}] {}", process.processId(), line)
