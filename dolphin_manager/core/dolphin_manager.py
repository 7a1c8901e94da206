"""Dolphin instance registry, the one owner of every running Dolphin.

Slots
~~~~~
``playback``, ``netplay``, ``config_netplay`` and ``config_playback`` hold
at most one instance each; ``spectate`` holds one instance per broadcast
index.  All slots live in a single ``{(InstanceSlot, index): DolphinInstance}``
map, singleton slots using ``None`` as their index.

The map is touched in exactly two places, both on the Qt event-loop thread:

* :meth:`DolphinManager.launch_dolphin`, which decides "reuse or create" and
  registers the new instance before returning control to the loop;
* :meth:`DolphinManager._on_process_exit`, reached through the process's
  ``finished`` signal, which removes the instance and its comm file once.

Because a slot is filled before the process is even started, two launch
requests for the same slot can never both see it empty.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QProcess, Signal
from loguru import logger

from dolphin_manager.core.comm_channel import CommChannel
from dolphin_manager.core.process_launcher import ProcessLauncher
from dolphin_manager.errors import ExecutableNotFoundError, InvalidArgumentError
from dolphin_manager.models.dolphin import (
    DolphinInstance,
    InstanceSlot,
    LaunchType,
    ReplayCommunication,
    SlotKey,
    UseType,
)

_CONFIG_SLOTS = {
    LaunchType.NETPLAY: InstanceSlot.CONFIG_NETPLAY,
    LaunchType.PLAYBACK: InstanceSlot.CONFIG_PLAYBACK,
}


def _coerce_types(
    use_type: UseType | str, launch_type: LaunchType | str | None
) -> tuple[UseType, LaunchType | None]:
    try:
        use_type = UseType(use_type)
    except ValueError as e:
        raise InvalidArgumentError(
            f"Unknown use type: {use_type!r}", details={"use_type": str(use_type)}
        ) from e
    if launch_type is None:
        return use_type, None
    try:
        return use_type, LaunchType(launch_type)
    except ValueError as e:
        raise InvalidArgumentError(
            f"Unknown launch type: {launch_type!r}", details={"launch_type": str(launch_type)}
        ) from e


def _default_iso_path() -> Optional[str]:
    from dolphin_manager.config import Config
    iso = Config().iso_path
    return str(iso) if iso else None


class DolphinManager(QObject):
    """Launches Dolphin instances and tracks them until they exit."""

    instance_started = Signal(str, int)  # slot, index (-1 for singleton slots)
    instance_closed = Signal(str, int)

    _instance: Optional["DolphinManager"] = None

    def __init__(
        self,
        launcher: ProcessLauncher | None = None,
        comm_channel: CommChannel | None = None,
        iso_path: Callable[[], Optional[str]] = _default_iso_path,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._launcher = launcher or ProcessLauncher()
        self._comm = comm_channel or CommChannel()
        self._iso_path = iso_path
        self._instances: dict[SlotKey, DolphinInstance] = {}

    @classmethod
    def get_instance(cls) -> "DolphinManager":
        """Return the process-wide manager, creating it on first use."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the process-wide manager (for testing)."""
        cls._instance = None

    # ------------------------------------------------------------------
    # Launch
    # ------------------------------------------------------------------

    def launch_dolphin(
        self,
        use_type: UseType | str,
        index: int | None = None,
        replay_comm: ReplayCommunication | dict[str, Any] | None = None,
        launch_type: LaunchType | str | None = None,
    ) -> DolphinInstance:
        """Start or reuse the Dolphin for *use_type* and hand it *replay_comm*.

        ``spectate`` needs a non-negative *index*; ``config`` needs a
        *launch_type*.  A payload is only written for use types that have a
        comm file (playback and spectate); it replaces whatever the running
        instance was told before.
        """
        use_type, launch_type = _coerce_types(use_type, launch_type)
        key = self._slot_key(use_type, index, launch_type)

        instance = self._instances.get(key)
        if instance is None:
            instance = self._start_instance(use_type, key, launch_type)
        else:
            logger.debug("Reusing {} Dolphin (index={})", key[0].value, key[1])

        if replay_comm is not None and instance.comm_file is not None:
            self._comm.write(instance.comm_file, replay_comm)

        return instance

    def _slot_key(
        self, use_type: UseType, index: int | None, launch_type: LaunchType | None
    ) -> SlotKey:
        if use_type == UseType.SPECTATE:
            if index is None or isinstance(index, bool) or not isinstance(index, int) or index < 0:
                raise InvalidArgumentError(
                    "Must have a valid index for spectating", details={"index": index}
                )
            return (InstanceSlot.SPECTATE, index)
        if use_type == UseType.CONFIG:
            if launch_type is None:
                raise InvalidArgumentError("Must define a launch type for configuration")
            return (_CONFIG_SLOTS[launch_type], None)
        if use_type == UseType.NETPLAY:
            return (InstanceSlot.NETPLAY, None)
        return (InstanceSlot.PLAYBACK, None)

    def _start_instance(
        self, use_type: UseType, key: SlotKey, launch_type: LaunchType | None
    ) -> DolphinInstance:
        uses_comm_file = use_type in (UseType.PLAYBACK, UseType.SPECTATE)
        if use_type == UseType.CONFIG:
            assert launch_type is not None
            build = launch_type
        elif use_type == UseType.NETPLAY:
            build = LaunchType.NETPLAY
        else:
            build = LaunchType.PLAYBACK

        extra_args: list[str] = []
        iso = self._iso_path()
        if iso and use_type != UseType.CONFIG:
            extra_args += ["-b", "-e", iso]

        comm_file = self._comm.create(use_type) if uses_comm_file else None
        try:
            process = self._launcher.prepare(build, comm_file, extra_args, parent=self)
        except Exception:
            if comm_file is not None:
                self._comm.destroy(comm_file)
            raise

        instance = DolphinInstance(
            use_type=use_type,
            process=process,
            launch_type=build,
            index=key[1],
            comm_file=comm_file,
        )
        self._instances[key] = instance
        process.finished.connect(lambda *_: self._on_process_exit(key, instance))
        process.errorOccurred.connect(lambda error: self._on_process_error(key, instance, error))

        logger.info("Starting {} Dolphin (slot={}, index={})", build.value, key[0].value, key[1])
        process.start()
        if instance.closed:
            raise ExecutableNotFoundError(
                f"{build.value} Dolphin failed to start", details={"slot": key[0].value}
            )

        self.instance_started.emit(key[0].value, -1 if key[1] is None else key[1])
        return instance

    # ------------------------------------------------------------------
    # Exit handling
    # ------------------------------------------------------------------

    def _on_process_error(
        self, key: SlotKey, instance: DolphinInstance, error: QProcess.ProcessError
    ) -> None:
        logger.warning("{} Dolphin process error: {}", key[0].value, error)
        # A process that never started emits no ``finished``
        if error == QProcess.ProcessError.FailedToStart:
            self._on_process_exit(key, instance)

    def _on_process_exit(self, key: SlotKey, instance: DolphinInstance) -> None:
        if instance.closed:
            return
        instance.closed = True

        if self._instances.get(key) is instance:
            del self._instances[key]
        if instance.comm_file is not None:
            self._comm.destroy(instance.comm_file)

        logger.info("{} Dolphin exited (index={})", key[0].value, key[1])
        self.instance_closed.emit(key[0].value, -1 if key[1] is None else key[1])
        instance.process.deleteLater()

    # ------------------------------------------------------------------
    # Queries / termination
    # ------------------------------------------------------------------

    def get_instance_for(
        self,
        use_type: UseType | str,
        index: int | None = None,
        launch_type: LaunchType | str | None = None,
    ) -> DolphinInstance | None:
        use_type, launch_type = _coerce_types(use_type, launch_type)
        return self._instances.get(self._slot_key(use_type, index, launch_type))

    def is_running(
        self,
        use_type: UseType | str,
        index: int | None = None,
        launch_type: LaunchType | str | None = None,
    ) -> bool:
        return self.get_instance_for(use_type, index, launch_type) is not None

    def instances(self) -> list[DolphinInstance]:
        """Snapshot of live instances, in launch order."""
        return list(self._instances.values())

    def spectate_instances(self) -> list[DolphinInstance]:
        return [
            inst for (slot, _), inst in self._instances.items()
            if slot == InstanceSlot.SPECTATE
        ]

    def kill_dolphin(
        self,
        use_type: UseType | str,
        index: int | None = None,
        launch_type: LaunchType | str | None = None,
    ) -> bool:
        """Ask an instance to terminate.

        The slot is freed by the normal exit path once the process is gone.
        Returns ``False`` if nothing was running in that slot.
        """
        instance = self.get_instance_for(use_type, index, launch_type)
        if instance is None:
            return False
        logger.info("Killing {} Dolphin (index={})", instance.use_type.value, instance.index)
        instance.process.kill()
        return True

    def kill_all(self) -> None:
        for instance in self.instances():
            instance.process.kill()
