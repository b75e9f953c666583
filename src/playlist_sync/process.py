"""External process execution with line-streamed output."""

from __future__ import annotations

import logging
from pathlib import Path
import subprocess
import threading
from typing import IO, Any, Callable, Iterator, Optional, Sequence

from playlist_sync.action import DownloadFinished, Downloading
from playlist_sync.bus import ActionBus

logger = logging.getLogger(__name__)

_READ_ERRORS = (OSError, ValueError, UnicodeDecodeError)


class ProcessError(RuntimeError):
    """Base class for recoverable process launch failures."""


class SpawnError(ProcessError):
    """The external command could not be started."""


class ProcessBusyError(ProcessError):
    """Another process is already running in the same working directory."""


def iter_lines(
    stream: IO[str],
    *,
    on_error: Optional[Callable[[BaseException], None]] = None,
) -> Iterator[str]:
    """Yield lines from ``stream`` without their line endings.

    A read error ends the sequence early and silently; ``on_error`` is told
    about it but nothing is raised to the consumer.
    """
    while True:
        try:
            line = stream.readline()
        except _READ_ERRORS as exc:
            if on_error is not None:
                on_error(exc)
            return
        if not line:
            return
        yield line.rstrip("\r\n")


class ProcessHandle:
    """A spawned command and the stream of its standard output."""

    def __init__(self, process: Any, command: Sequence[str], cwd: Path) -> None:
        self.process = process
        self.command = list(command)
        self.cwd = cwd
        self.truncated = False
        self._thread: Optional[threading.Thread] = None

    @property
    def name(self) -> str:
        return Path(self.command[0]).name if self.command else "process"

    def lines(self) -> Iterator[str]:
        stream = self.process.stdout
        if stream is None:
            return iter(())
        return iter_lines(stream, on_error=self._mark_truncated)

    def _mark_truncated(self, exc: BaseException) -> None:
        self.truncated = True
        logger.warning("Output of %s truncated: %s", self.name, exc)

    def exit_status(self) -> Optional[int]:
        """Return the exit code, waiting only when the output ended normally."""
        if self.truncated:
            return self.process.poll()
        return self.process.wait()

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Block until the child exits; for tests and shutdown."""
        return self.process.wait(timeout=timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


class ProcessRunner:
    """Spawn commands and forward their output onto the action bus.

    One worker thread per process; at most one live process per working
    directory.
    """

    def __init__(
        self,
        bus: ActionBus,
        *,
        popen: Callable[..., Any] = subprocess.Popen,
    ) -> None:
        self._bus = bus
        self._popen = popen
        self._lock = threading.Lock()
        self._active: set[str] = set()

    def is_busy(self, cwd: Path) -> bool:
        with self._lock:
            return _key(cwd) in self._active

    def spawn(self, command: str, args: Sequence[str], cwd: Path) -> ProcessHandle:
        argv = [command, *args]
        logger.info("Spawning %s in %s", argv, cwd)
        try:
            process = self._popen(
                argv,
                cwd=str(cwd),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                bufsize=1,
            )
        except OSError as exc:
            raise SpawnError(f"Failed to start {command}: {exc}") from exc
        return ProcessHandle(process, argv, cwd)

    def run(
        self,
        command: str,
        args: Sequence[str],
        cwd: Path,
        *,
        preamble: Sequence[str] = (),
    ) -> ProcessHandle:
        """Start ``command`` in ``cwd`` and stream its output in the background.

        ``preamble`` lines are sent before the first line of output.
        """
        key = _key(cwd)
        with self._lock:
            if key in self._active:
                raise ProcessBusyError(f"An operation is already running in {cwd}")
            self._active.add(key)
        try:
            handle = self.spawn(command, args, cwd)
        except SpawnError:
            self._release(key)
            raise
        thread = threading.Thread(
            target=self._forward,
            args=(handle, key, tuple(preamble)),
            name=f"Process-{handle.name}",
            daemon=True,
        )
        handle._thread = thread
        thread.start()
        return handle

    def _forward(
        self, handle: ProcessHandle, key: str, preamble: tuple[str, ...]
    ) -> None:
        try:
            for line in preamble:
                self._bus.send(Downloading(line))
            for line in handle.lines():
                self._bus.send(Downloading(line))
            status = handle.exit_status()
            logger.info("%s finished status=%s", handle.name, status)
            if status:
                self._bus.send(
                    Downloading(f"{handle.name} exited with status {status}")
                )
        finally:
            stream = handle.process.stdout
            if stream is not None:
                try:
                    stream.close()
                except OSError:
                    logger.debug("Failed to close output of %s", handle.name)
            self._release(key)
        self._bus.send(DownloadFinished())

    def _release(self, key: str) -> None:
        with self._lock:
            self._active.discard(key)


def _key(cwd: Path) -> str:
    return str(Path(cwd).resolve())
