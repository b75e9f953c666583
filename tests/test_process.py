"""Tests for process spawning and output streaming."""

from __future__ import annotations

import io
from pathlib import Path
import subprocess
import sys

import pytest

from playlist_sync.action import DownloadFinished, Downloading
from playlist_sync.bus import ActionBus
from playlist_sync.process import (
    ProcessBusyError,
    ProcessRunner,
    SpawnError,
    iter_lines,
)


def _receive_all(bus: ActionBus) -> list:
    received = []
    while True:
        action = bus.try_receive()
        if action is None:
            return received
        received.append(action)


class _BrokenStream:
    def __init__(self, lines: list[str]) -> None:
        self._lines = list(lines)
        self.closed = False

    def readline(self) -> str:
        if self._lines:
            return self._lines.pop(0)
        raise OSError("pipe broke")

    def close(self) -> None:
        self.closed = True


class _FakeProcess:
    def __init__(self, stdout, returncode: int | None = 0) -> None:
        self.stdout = stdout
        self.returncode = returncode
        self.waited = False

    def wait(self) -> int | None:
        self.waited = True
        return self.returncode

    def poll(self) -> int | None:
        return self.returncode


def test_iter_lines_strips_endings() -> None:
    stream = io.StringIO("one\r\ntwo\nthree")
    assert list(iter_lines(stream)) == ["one", "two", "three"]


def test_iter_lines_stops_silently_on_error() -> None:
    errors: list[BaseException] = []
    lines = list(iter_lines(_BrokenStream(["a\n"]), on_error=errors.append))
    assert lines == ["a"]
    assert isinstance(errors[0], OSError)


def test_run_streams_lines_then_finishes(tmp_path: Path) -> None:
    bus = ActionBus()
    runner = ProcessRunner(bus)
    handle = runner.run(
        sys.executable,
        ["-c", "print('Fetching...'); print('Done')"],
        tmp_path,
    )
    handle.join(10)
    assert _receive_all(bus) == [
        Downloading("Fetching..."),
        Downloading("Done"),
        DownloadFinished(),
    ]
    assert not runner.is_busy(tmp_path)


def test_run_sends_preamble_first(tmp_path: Path) -> None:
    bus = ActionBus()
    handle = ProcessRunner(bus).run(
        sys.executable, ["-c", "print('out')"], tmp_path, preamble=["Starting"]
    )
    handle.join(10)
    assert _receive_all(bus) == [
        Downloading("Starting"),
        Downloading("out"),
        DownloadFinished(),
    ]


def test_run_uses_working_directory(tmp_path: Path) -> None:
    bus = ActionBus()
    handle = ProcessRunner(bus).run(
        sys.executable, ["-c", "import os; print(os.getcwd())"], tmp_path
    )
    handle.join(10)
    assert handle.wait(10) == 0
    received = _receive_all(bus)
    assert Path(received[0].line).resolve() == tmp_path.resolve()


def test_nonzero_exit_adds_status_line(tmp_path: Path) -> None:
    bus = ActionBus()
    handle = ProcessRunner(bus).run(
        sys.executable,
        ["-c", "import sys; print('oops', file=sys.stderr); sys.exit(3)"],
        tmp_path,
    )
    handle.join(10)
    received = _receive_all(bus)
    assert received[0] == Downloading("oops")
    assert "exited with status 3" in received[1].line
    assert received[-1] == DownloadFinished()


def test_spawn_error_raises_synchronously(tmp_path: Path) -> None:
    bus = ActionBus()
    runner = ProcessRunner(bus)
    with pytest.raises(SpawnError):
        runner.run("definitely-not-a-real-command-42", [], tmp_path)
    assert bus.try_receive() is None
    assert not runner.is_busy(tmp_path)


def test_read_error_truncates_and_still_finishes(tmp_path: Path) -> None:
    bus = ActionBus()
    stream = _BrokenStream(["first\n"])
    process = _FakeProcess(stream, returncode=None)
    runner = ProcessRunner(bus, popen=lambda *args, **kwargs: process)
    handle = runner.run("tool", ["arg"], tmp_path)
    handle.join(10)
    assert handle.truncated
    assert not process.waited
    assert stream.closed
    assert _receive_all(bus) == [Downloading("first"), DownloadFinished()]


def test_popen_arguments(tmp_path: Path) -> None:
    calls: list[tuple[list[str], dict]] = []

    def fake_popen(argv, **kwargs):
        calls.append((argv, kwargs))
        return _FakeProcess(io.StringIO(""))

    runner = ProcessRunner(ActionBus(), popen=fake_popen)
    runner.run("spotdl", ["sync", "save.spotdl"], tmp_path).join(10)
    argv, kwargs = calls[0]
    assert argv == ["spotdl", "sync", "save.spotdl"]
    assert kwargs["cwd"] == str(tmp_path)
    assert kwargs["stdout"] == subprocess.PIPE
    assert kwargs["stderr"] == subprocess.STDOUT
    assert kwargs["stdin"] == subprocess.DEVNULL


def test_single_flight_per_directory(tmp_path: Path) -> None:
    bus = ActionBus()
    runner = ProcessRunner(bus)
    other = tmp_path / "other"
    other.mkdir()
    handle = runner.run(
        sys.executable, ["-c", "import time; time.sleep(0.5)"], tmp_path
    )
    try:
        assert runner.is_busy(tmp_path)
        with pytest.raises(ProcessBusyError):
            runner.run(sys.executable, ["-c", "pass"], tmp_path)
        runner.run(sys.executable, ["-c", "pass"], other).join(10)
    finally:
        handle.join(10)
    assert not runner.is_busy(tmp_path)


class _RecordingBus(ActionBus):
    """Notes whether the directory was still busy when the run finished."""

    def __init__(self, cwd: Path) -> None:
        super().__init__()
        self.cwd = cwd
        self.runner: ProcessRunner | None = None
        self.busy_at_finish: bool | None = None

    def send(self, action) -> None:
        if isinstance(action, DownloadFinished) and self.runner is not None:
            self.busy_at_finish = self.runner.is_busy(self.cwd)
        super().send(action)


def test_directory_is_free_once_finished_is_sent(tmp_path: Path) -> None:
    bus = _RecordingBus(tmp_path)
    runner = ProcessRunner(
        bus, popen=lambda *args, **kwargs: _FakeProcess(io.StringIO("x\n"))
    )
    bus.runner = runner
    runner.run("tool", [], tmp_path).join(10)
    assert bus.busy_at_finish is False
