from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication, QObject, QProcess, Signal

from dolphin_manager.config import Config
from dolphin_manager.core.comm_channel import CommChannel
from dolphin_manager.core.dolphin_manager import DolphinManager


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture()
def config(tmp_path):
    Config.reset()
    cfg = Config(data_dir=tmp_path / "data")
    yield cfg
    Config.reset()


class FakeProcess(QObject):
    """Stands in for a QProcess: same signals, no real child."""

    finished = Signal(int, object)
    errorOccurred = Signal(object)

    def __init__(self, program: str, args: list[str], parent: QObject | None = None,
                 fail_to_start: bool = False) -> None:
        super().__init__(parent)
        self._program = program
        self.args = args
        self.started = False
        self.killed = False
        self._fail_to_start = fail_to_start

    def program(self) -> str:
        return self._program

    def start(self) -> None:
        if self._fail_to_start:
            self.errorOccurred.emit(QProcess.ProcessError.FailedToStart)
            return
        self.started = True

    def kill(self) -> None:
        self.killed = True
        self.exit(9)

    def exit(self, code: int = 0) -> None:
        self.finished.emit(code, QProcess.ExitStatus.NormalExit)


class FakeLauncher:
    """Records every prepared process instead of spawning Dolphin."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.processes: list[FakeProcess] = []
        self.fail_to_start = False
        self.raise_on_prepare: Exception | None = None

    def prepare(self, launch_type, comm_file=None, extra_args=None, parent=None):
        if self.raise_on_prepare is not None:
            raise self.raise_on_prepare
        self.calls.append({
            "launch_type": launch_type,
            "comm_file": comm_file,
            "extra_args": list(extra_args or []),
        })
        args = (["-i", str(comm_file)] if comm_file else []) + list(extra_args or [])
        proc = FakeProcess(f"dolphin-{launch_type.value}", args, parent,
                           fail_to_start=self.fail_to_start)
        self.processes.append(proc)
        return proc


@pytest.fixture()
def comm_dir(tmp_path) -> Path:
    d = tmp_path / "comm"
    d.mkdir()
    return d


@pytest.fixture()
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture()
def manager(launcher, comm_dir):
    DolphinManager.reset()
    mgr = DolphinManager(
        launcher=launcher,
        comm_channel=CommChannel(temp_dir=comm_dir),
        iso_path=lambda: "/games/melee.iso",
    )
    yield mgr
    DolphinManager.reset()
