import json

from dolphin_manager.config import Config
from dolphin_manager.errors import CommFileError, InvalidArgumentError
from dolphin_manager.models.dolphin import ReplayCommunication, ReplayQueueItem


def test_payload_defaults():
    assert ReplayCommunication().to_dict() == {
        "mode": "normal",
        "isRealTimeMode": True,
        "shouldResync": True,
        "rollbackDisplayMethod": "off",
    }


def test_payload_from_dict_keeps_wire_fields():
    wire = {
        "mode": "queue",
        "commandId": "abc",
        "outputOverlayFiles": True,
        "isRealTimeMode": False,
        "shouldResync": False,
        "rollbackDisplayMethod": "visible",
        "queue": [{"path": "a.slp", "gameStartAt": "10/01/21 5:00 pm", "gameStation": "Wii 1"}],
    }
    comm = ReplayCommunication.from_dict(wire)
    assert comm.queue == [ReplayQueueItem(path="a.slp", game_start_at="10/01/21 5:00 pm", game_station="Wii 1")]
    assert comm.to_dict() == wire


def test_errors_keep_details():
    err = CommFileError("gone", details={"path": "/tmp/x"})
    assert isinstance(err, OSError)
    assert str(err) == "gone"
    assert err.to_dict() == {"error": "CommFileError", "message": "gone", "details": {"path": "/tmp/x"}}
    assert isinstance(InvalidArgumentError("bad"), ValueError)


def test_config_defaults(config, tmp_path):
    assert config.iso_path is None
    assert config.get_dolphin_path("netplay") == tmp_path / "data" / "netplay"
    assert config.get_release_url("playback").endswith("/releases/latest")
    assert config.download_dir == tmp_path / "data" / "temp"


def test_config_is_persisted(config, tmp_path):
    config.set("iso_path", "/games/melee.iso")
    config.set_dolphin_path("playback", tmp_path / "custom")

    saved = json.loads((tmp_path / "data" / "settings.json").read_text(encoding="utf-8"))
    assert saved["iso_path"] == "/games/melee.iso"

    Config.reset()
    reloaded = Config(data_dir=tmp_path / "data")
    assert str(reloaded.iso_path) == "/games/melee.iso"
    assert reloaded.get_dolphin_path("playback") == tmp_path / "custom"
    assert reloaded is Config()


def test_setup_logger_writes_file(config, tmp_path):
    from loguru import logger

    from dolphin_manager.logger import setup_logger

    log_file = setup_logger(log_dir=tmp_path / "logs", level="WARNING")
    logger.info("comm file written")
    logger.remove()

    assert log_file == tmp_path / "logs" / "launcher.log"
    assert "comm file written" in log_file.read_text(encoding="utf-8")
