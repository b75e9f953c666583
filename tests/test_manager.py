"""Tests for the archive manager."""

from __future__ import annotations

from pathlib import Path
import time
from typing import Sequence

import pytest

from playlist_sync.action import (
    DownloadFinished,
    Downloading,
    EnterManager,
    Error,
    GetDirs,
    SelectActivePlaylist,
    SelectFolder,
)
from playlist_sync.bus import ActionBus
from playlist_sync.components.manager import Manager, scan_downloads
from playlist_sync.config import AppConfig
from playlist_sync.process import ProcessRunner


class FakeRunner:
    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str], Path, list[str]]] = []

    def run(
        self,
        command: str,
        args: Sequence[str],
        cwd: Path,
        *,
        preamble: Sequence[str] = (),
    ) -> None:
        self.calls.append((command, list(args), cwd, list(preamble)))


def _receive_all(bus: ActionBus) -> list:
    received = []
    while True:
        action = bus.try_receive()
        if action is None:
            return received
        received.append(action)


def _populate(root: Path) -> None:
    (root / "RoadTrip").mkdir()
    (root / "chill").mkdir()
    (root / "Old.zip").write_bytes(b"")
    (root / ".hidden").mkdir()
    (root / "notes.txt").write_text("x", encoding="utf-8")


def test_scan_lists_dirs_and_archives_sorted(tmp_path: Path) -> None:
    _populate(tmp_path)
    assert scan_downloads(tmp_path) == ["chill", "Old.zip", "RoadTrip"]


def test_enter_manager_returns_get_dirs(tmp_path: Path) -> None:
    _populate(tmp_path)
    manager = Manager(folder=str(tmp_path), runner=FakeRunner())  # type: ignore[arg-type]
    result = manager.update(EnterManager())
    assert result == GetDirs(("chill", "Old.zip", "RoadTrip"))


def test_scan_error_becomes_output(tmp_path: Path) -> None:
    bus = ActionBus()
    manager = Manager(folder=str(tmp_path / "missing"), runner=FakeRunner())  # type: ignore[arg-type]
    manager.register_action_sender(bus)
    assert manager.update(EnterManager()) == GetDirs(())
    received = _receive_all(bus)
    assert received[0].line.startswith("Error reading directory:")
    assert isinstance(received[1], Error)
    assert received[1].message == received[0].line


def test_no_folder_gives_empty_list() -> None:
    manager = Manager()
    assert manager.update(EnterManager()) == GetDirs(())


def test_select_folder_archives_it(tmp_path: Path) -> None:
    runner = FakeRunner()
    manager = Manager(runner=runner)  # type: ignore[arg-type]
    manager.update(SelectFolder(str(tmp_path)))
    manager.update(GetDirs(("RoadTrip", "Old.zip")))
    manager.update(SelectActivePlaylist(0))
    assert runner.calls[0] == (
        "zip",
        ["-r", "RoadTrip.zip", "RoadTrip"],
        tmp_path,
        ["Archiving RoadTrip..."],
    )


def test_select_archive_unpacks_it(tmp_path: Path) -> None:
    runner = FakeRunner()
    manager = Manager(folder=str(tmp_path), runner=runner)  # type: ignore[arg-type]
    manager.register_config(AppConfig(unzip_command="bsdunzip"))
    manager.update(GetDirs(("RoadTrip", "Old.zip")))
    manager.update(SelectActivePlaylist(1))
    command, args, cwd, _preamble = runner.calls[0]
    assert (command, args, cwd) == ("bsdunzip", ["-o", "Old.zip"], tmp_path)


def test_select_out_of_range_finishes_immediately(tmp_path: Path) -> None:
    bus = ActionBus()
    runner = FakeRunner()
    manager = Manager(folder=str(tmp_path), runner=runner)  # type: ignore[arg-type]
    manager.register_action_sender(bus)
    manager.update(SelectActivePlaylist(3))
    assert runner.calls == []
    assert _receive_all(bus)[-1] == DownloadFinished()


@pytest.mark.external
def test_archive_with_real_zip(tmp_path: Path) -> None:
    playlist = tmp_path / "RoadTrip"
    playlist.mkdir()
    (playlist / "song.txt").write_text("la", encoding="utf-8")
    bus = ActionBus()
    manager = Manager(folder=str(tmp_path), runner=ProcessRunner(bus))
    manager.register_action_sender(bus)
    manager.update(GetDirs(("RoadTrip",)))
    manager.update(SelectActivePlaylist(0))
    received: list = []
    deadline = time.monotonic() + 10
    while DownloadFinished() not in received and time.monotonic() < deadline:
        action = bus.try_receive()
        if action is None:
            time.sleep(0.05)
        else:
            received.append(action)
    assert received[0] == Downloading("Archiving RoadTrip...")
    assert received[-1] == DownloadFinished()
    assert (tmp_path / "RoadTrip.zip").is_file()


def test_missing_runner_is_a_runtime_error(tmp_path: Path) -> None:
    manager = Manager(folder=str(tmp_path))
    manager.update(GetDirs(("RoadTrip",)))
    with pytest.raises(RuntimeError, match="no process runner"):
        manager.update(SelectActivePlaylist(0))
