"""Unbounded multi-producer/single-consumer action queue."""

from __future__ import annotations

import queue
import threading
from typing import Optional

from playlist_sync.action import Action


class BusClosedError(RuntimeError):
    """Raised when sending on a bus whose consumer is gone."""


class ActionBus:
    """Thread-safe FIFO connecting producers to the dispatch loop.

    ``send`` never blocks. Order is preserved per producer; nothing is
    guaranteed across producers.
    """

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[Action] = queue.SimpleQueue()
        self._closed = threading.Event()

    def send(self, action: Action) -> None:
        if self._closed.is_set():
            raise BusClosedError(f"Action bus closed; dropped {action!r}")
        self._queue.put(action)

    def try_receive(self) -> Optional[Action]:
        """Return the next queued action or None when the queue is empty."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()
