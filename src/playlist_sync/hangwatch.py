"""Crash dumps and a watchdog for a stalled dispatch loop."""

from __future__ import annotations

import faulthandler
import logging
from pathlib import Path
import threading
import time
from typing import Callable, Optional, TextIO

logger = logging.getLogger(__name__)

_DUMP_FILE: Optional[TextIO] = None
_DUMP_PATH: Optional[Path] = None
_LOCK = threading.Lock()


def enable_faulthandler(log_path: Path) -> Path:
    """Send faulthandler output to ``hangdump.log`` beside ``log_path``."""
    global _DUMP_FILE, _DUMP_PATH
    dump_path = log_path.parent / "hangdump.log"
    try:
        dump_path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(dump_path, "a", encoding="utf-8")
    except OSError:
        logger.warning("Cannot open %s; fault dumps disabled", dump_path)
        return dump_path
    with _LOCK:
        _DUMP_FILE = handle
        _DUMP_PATH = dump_path
    faulthandler.enable(file=handle, all_threads=True)
    return dump_path


def dump_threads(label: str) -> None:
    """Write a labelled stack dump of every thread."""
    handle = _DUMP_FILE
    if handle is None:
        return
    stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    try:
        handle.write(f"\n[{stamp}] {label}\n")
        faulthandler.dump_traceback(file=handle, all_threads=True)
        handle.flush()
    except (OSError, ValueError):
        logger.debug("Thread dump failed", exc_info=True)


class LoopWatchdog:
    """Dump all threads when the dispatch loop has not drained for a while.

    ``last_drain`` returns the monotonic time of the latest drain. Dumps
    repeat at most every ``repeat_seconds`` while the stall lasts.
    """

    def __init__(
        self,
        last_drain: Callable[[], float],
        *,
        threshold_seconds: float = 15.0,
        repeat_seconds: float = 30.0,
        poll_seconds: float = 1.0,
    ) -> None:
        self._last_drain = last_drain
        self._threshold_seconds = threshold_seconds
        self._repeat_seconds = repeat_seconds
        self._poll_seconds = poll_seconds
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="LoopWatchdog", daemon=True
        )
        self._last_dump: Optional[float] = None

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def check(self, now: float) -> bool:
        """Dump threads if the loop is stalled at ``now``; return True if dumped."""
        try:
            last = self._last_drain()
        except Exception:
            logger.debug("last_drain callback failed", exc_info=True)
            return False
        if now - last <= self._threshold_seconds:
            return False
        if self._last_dump is not None and now - self._last_dump <= self._repeat_seconds:
            return False
        self._last_dump = now
        logger.warning("Dispatch loop stalled for %.1fs", now - last)
        dump_threads("dispatch loop stalled")
        return True

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.check(time.monotonic())
            self._stop_event.wait(self._poll_seconds)
