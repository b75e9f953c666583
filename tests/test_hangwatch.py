"""Tests for crash dumps and the loop watchdog."""

from __future__ import annotations

import io

from playlist_sync import hangwatch


def test_enable_faulthandler_opens_dump_file(tmp_path, monkeypatch) -> None:
    calls: list[object] = []

    def fake_enable(*, file, all_threads: bool) -> None:
        calls.append((file, all_threads))

    monkeypatch.setattr(hangwatch.faulthandler, "enable", fake_enable)
    dump_path = hangwatch.enable_faulthandler(tmp_path / "logs" / "app.log")
    try:
        assert dump_path == tmp_path / "logs" / "hangdump.log"
        assert dump_path.exists()
        assert calls and calls[0][1] is True
    finally:
        handle = hangwatch._DUMP_FILE
        assert handle is not None
        handle.close()
        hangwatch._DUMP_FILE = None
        hangwatch._DUMP_PATH = None


def test_dump_threads_writes_label(monkeypatch) -> None:
    buffer = io.StringIO()

    def fake_dump_traceback(*, file, all_threads: bool) -> None:
        file.write("traceback")

    monkeypatch.setattr(hangwatch.faulthandler, "dump_traceback", fake_dump_traceback)
    monkeypatch.setattr(hangwatch, "_DUMP_FILE", buffer)
    hangwatch.dump_threads("test")
    output = buffer.getvalue()
    assert "test" in output
    assert "traceback" in output


def test_dump_threads_without_file_is_noop(monkeypatch) -> None:
    monkeypatch.setattr(hangwatch, "_DUMP_FILE", None)
    hangwatch.dump_threads("ignored")


def test_watchdog_dumps_once_per_repeat_window(monkeypatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr(hangwatch, "dump_threads", calls.append)
    watchdog = hangwatch.LoopWatchdog(
        lambda: 0.0, threshold_seconds=15.0, repeat_seconds=30.0
    )
    assert watchdog.check(10.0) is False
    assert watchdog.check(20.0) is True
    assert watchdog.check(40.0) is False
    assert watchdog.check(51.0) is True
    assert calls == ["dispatch loop stalled", "dispatch loop stalled"]


def test_watchdog_survives_callback_errors(monkeypatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr(hangwatch, "dump_threads", calls.append)

    def broken() -> float:
        raise RuntimeError("gone")

    watchdog = hangwatch.LoopWatchdog(broken)
    assert watchdog.check(100.0) is False
    assert calls == []


def test_watchdog_run_stops(monkeypatch) -> None:
    checks: list[float] = []
    watchdog = hangwatch.LoopWatchdog(lambda: 0.0, poll_seconds=0.01)
    monkeypatch.setattr(watchdog, "check", checks.append)
    watchdog.start()
    watchdog.stop()
    watchdog._thread.join(2)
    assert not watchdog._thread.is_alive()
