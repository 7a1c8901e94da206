import json
import re

import pytest

from dolphin_manager.core.comm_channel import CommChannel
from dolphin_manager.errors import CommFileError
from dolphin_manager.models.dolphin import ReplayCommunication, UseType


def test_create_names_file_after_use_type(comm_dir):
    channel = CommChannel(temp_dir=comm_dir)
    path = channel.create(UseType.SPECTATE)

    assert path.parent == comm_dir
    assert path.is_file()
    assert re.fullmatch(r"slippi-spectate-[0-9a-f]{24}\.txt", path.name)


def test_created_paths_do_not_collide(comm_dir):
    channel = CommChannel(temp_dir=comm_dir)
    paths = {channel.create(UseType.PLAYBACK) for _ in range(50)}
    assert len(paths) == 50


def test_write_overwrites_whole_file(comm_dir):
    channel = CommChannel(temp_dir=comm_dir)
    path = channel.create(UseType.PLAYBACK)

    channel.write(path, ReplayCommunication(replay="a-much-longer-replay-name.slp", start_frame=10))
    channel.write(path, ReplayCommunication(replay="b.slp"))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == {
        "mode": "normal",
        "replay": "b.slp",
        "isRealTimeMode": True,
        "shouldResync": True,
        "rollbackDisplayMethod": "off",
    }


def test_write_to_missing_file_fails(comm_dir):
    channel = CommChannel(temp_dir=comm_dir)
    path = channel.create(UseType.PLAYBACK)
    channel.destroy(path)

    with pytest.raises(CommFileError):
        channel.write(path, {"mode": "normal"})
    with pytest.raises(OSError):
        channel.write(path, {"mode": "normal"})


def test_destroy_is_idempotent(comm_dir):
    channel = CommChannel(temp_dir=comm_dir)
    path = channel.create(UseType.PLAYBACK)

    channel.destroy(path)
    channel.destroy(path)

    assert not path.exists()


def test_default_temp_dir_comes_from_config(config, tmp_path):
    config.set("temp_dir", str(tmp_path / "scratch"))
    path = CommChannel().create(UseType.PLAYBACK)
    assert path.parent == tmp_path / "scratch"
