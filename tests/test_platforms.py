import os
import zipfile
from pathlib import Path

import pytest

from dolphin_manager.errors import ExecutableNotFoundError, UnsupportedPlatformError
from dolphin_manager.models.dolphin import LaunchType
from dolphin_manager.platforms import macos as macos_mod
from dolphin_manager.platforms.linux import LinuxPlatform
from dolphin_manager.platforms.macos import MacPlatform
from dolphin_manager.platforms.platform_manager import create_platform_strategy
from dolphin_manager.platforms.windows import WindowsPlatform


@pytest.mark.parametrize("system,cls,key", [
    ("Windows", WindowsPlatform, "win32"),
    ("Darwin", MacPlatform, "darwin"),
    ("Linux", LinuxPlatform, "linux"),
])
def test_strategy_selection(system, cls, key):
    strategy = create_platform_strategy(system)
    assert isinstance(strategy, cls)
    assert strategy.release_key == key


def test_unknown_os_is_unsupported():
    with pytest.raises(UnsupportedPlatformError):
        create_platform_strategy("Plan9")


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------

def make_release_zip(path, wrap: str | None = None):
    prefix = f"{wrap}/" if wrap else ""
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(f"{prefix}Slippi Dolphin.exe", "exe")
        zf.writestr(f"{prefix}Sys/GameSettings/GALE01.ini", "new")
    return path


def test_windows_paths(tmp_path):
    win = WindowsPlatform()
    assert win.user_folder(tmp_path, LaunchType.NETPLAY) == tmp_path / "User"
    assert win.sys_folder(tmp_path, LaunchType.NETPLAY) == tmp_path / "Sys"


@pytest.mark.parametrize("wrap", [None, "FM-Slippi"])
def test_windows_install_keeps_user_and_replaces_sys(tmp_path, wrap):
    dest = tmp_path / "netplay"
    (dest / "User" / "Config").mkdir(parents=True)
    (dest / "User" / "Config" / "Dolphin.ini").write_text("mine")
    (dest / "Sys").mkdir()
    (dest / "Sys" / "removed.ini").write_text("old")

    asset = make_release_zip(tmp_path / "release.zip", wrap)
    win = WindowsPlatform()
    win.install(asset, dest, LaunchType.NETPLAY, lambda msg: None)

    assert (dest / "User" / "Config" / "Dolphin.ini").read_text() == "mine"
    assert not (dest / "Sys" / "removed.ini").exists()
    assert (dest / "Sys" / "GameSettings" / "GALE01.ini").read_text() == "new"
    assert win.find_executable(dest, LaunchType.NETPLAY) == dest / "Slippi Dolphin.exe"


def test_windows_missing_folder(tmp_path):
    with pytest.raises(ExecutableNotFoundError):
        WindowsPlatform().find_executable(tmp_path / "nope", LaunchType.NETPLAY)


# ---------------------------------------------------------------------------
# macOS
# ---------------------------------------------------------------------------

def test_mac_paths_and_executable(tmp_path):
    mac = MacPlatform()
    resources = tmp_path / "Slippi Dolphin.app" / "Contents" / "Resources"
    assert mac.user_folder(tmp_path, LaunchType.PLAYBACK) == resources / "User"
    assert mac.sys_folder(tmp_path, LaunchType.PLAYBACK) == resources / "Sys"

    with pytest.raises(ExecutableNotFoundError):
        mac.find_executable(tmp_path, LaunchType.PLAYBACK)

    binary = tmp_path / "Slippi Dolphin.app" / "Contents" / "MacOS" / "Slippi Dolphin"
    binary.parent.mkdir(parents=True)
    binary.write_text("")
    assert mac.find_executable(tmp_path, LaunchType.PLAYBACK) == binary


def fake_hdiutil(calls, ship_app=True):
    def run(cmd, **kwargs):
        calls.append(cmd[1])
        if cmd[1] == "attach" and ship_app:
            mount = Path(cmd[cmd.index("-mountpoint") + 1])
            binary = mount / macos_mod.APP_NAME / "Contents" / "MacOS" / "Slippi Dolphin"
            binary.parent.mkdir(parents=True)
            binary.write_text("new")
    return run


def seed_mac_user(mac, dest):
    user = mac.user_folder(dest, LaunchType.PLAYBACK)
    (user / "Config").mkdir(parents=True)
    (user / "Config" / "Dolphin.ini").write_text("mine")
    return user


def test_mac_install_replaces_app_and_keeps_user(tmp_path, monkeypatch):
    mac = MacPlatform()
    dest = tmp_path / "playback"
    user = seed_mac_user(mac, dest)
    calls = []
    monkeypatch.setattr(macos_mod.subprocess, "run", fake_hdiutil(calls))

    mac.install(tmp_path / "Slippi.dmg", dest, LaunchType.PLAYBACK, lambda msg: None)

    assert calls == ["attach", "detach"]
    assert mac.find_executable(dest, LaunchType.PLAYBACK).read_text() == "new"
    assert (user / "Config" / "Dolphin.ini").read_text() == "mine"
    assert not (dest / "User.backup").exists()


def test_mac_failed_copy_keeps_user(tmp_path, monkeypatch):
    mac = MacPlatform()
    dest = tmp_path / "playback"
    user = seed_mac_user(mac, dest)
    calls = []
    monkeypatch.setattr(macos_mod.subprocess, "run", fake_hdiutil(calls, ship_app=False))

    with pytest.raises(OSError):
        mac.install(tmp_path / "Slippi.dmg", dest, LaunchType.PLAYBACK, lambda msg: None)

    assert calls == ["attach", "detach"]
    assert (user / "Config" / "Dolphin.ini").read_text() == "mine"


# ---------------------------------------------------------------------------
# Linux
# ---------------------------------------------------------------------------

def test_linux_user_folder_per_build(tmp_path):
    linux = LinuxPlatform(config_home=tmp_path / "cfg", data_dir=tmp_path / "data")
    assert linux.user_folder(tmp_path, LaunchType.NETPLAY) == tmp_path / "cfg" / "SlippiOnline"
    assert linux.user_folder(tmp_path, LaunchType.PLAYBACK) == tmp_path / "cfg" / "SlippiPlayback"
    assert linux.sys_folder(tmp_path, LaunchType.NETPLAY) == tmp_path / "data" / "netplay" / "Sys"
    assert linux.user_folder_outside_install


def test_linux_executable_matches_build(tmp_path):
    linux = LinuxPlatform(config_home=tmp_path / "cfg", data_dir=tmp_path / "data")
    (tmp_path / "Slippi_Online-x86_64.AppImage").write_text("")

    assert linux.find_executable(tmp_path, LaunchType.NETPLAY).name == "Slippi_Online-x86_64.AppImage"
    with pytest.raises(ExecutableNotFoundError):
        linux.find_executable(tmp_path, LaunchType.PLAYBACK)


def test_linux_install_marks_executable(tmp_path):
    linux = LinuxPlatform(config_home=tmp_path / "cfg", data_dir=tmp_path / "data")
    asset = tmp_path / "Slippi_Online-x86_64.AppImage"
    asset.write_text("#!/bin/sh\n")
    dest = tmp_path / "netplay"

    linux.install(asset, dest, LaunchType.NETPLAY, lambda msg: None)

    installed = dest / "Slippi_Online-x86_64.AppImage"
    assert installed.is_file()
    if os.name == "posix":
        assert os.access(installed, os.X_OK)
    assert (tmp_path / "cfg" / "SlippiOnline").is_dir()
