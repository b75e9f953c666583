"""Interaction modes and the transitions between them."""

from __future__ import annotations

from enum import Enum
import logging

from playlist_sync.action import (
    Action,
    BackHome,
    DownloadFinished,
    EnterDownloader,
    EnterEditing,
    EnterManager,
    QuitEditing,
    SelectActivePlaylist,
    SelectFolder,
    SelectPlaylist,
)

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """The screen currently owning the terminal."""

    HOME = "Home"
    INPUT = "Input"
    DOWNLOADER = "Downloader"
    MANAGER = "Manager"
    DOWNLOADING = "Downloading"
    WAITING = "Waiting"
    IDLE = "Idle"

    @classmethod
    def parse(cls, value: str) -> "Mode":
        """Look up a mode by its display name or member name."""
        for mode in cls:
            if value in (mode.value, mode.name, mode.name.lower()):
                return mode
        raise ValueError(f"Unknown mode: {value!r}")


_PICKERS = frozenset({Mode.DOWNLOADER, Mode.MANAGER})


class ModeMachine:
    """Single exclusive mode value driven by actions.

    ``Input`` remembers the mode it was entered from so ``QuitEditing``
    can return there.
    """

    def __init__(self, initial: Mode = Mode.HOME, *, return_to: Mode = Mode.HOME):
        self._current = initial
        self._return_to = return_to

    @property
    def current(self) -> Mode:
        return self._current

    def next_mode(self, action: Action) -> Mode:
        """Return the mode ``action`` leads to without applying it."""
        current = self._current
        if isinstance(action, EnterDownloader):
            return Mode.DOWNLOADER
        if isinstance(action, EnterManager):
            return Mode.MANAGER
        if isinstance(action, EnterEditing):
            return Mode.INPUT
        if isinstance(action, BackHome):
            return Mode.HOME
        if current == Mode.INPUT:
            if isinstance(action, SelectFolder):
                return Mode.HOME
            if isinstance(action, QuitEditing):
                return self._return_to
        if current in _PICKERS and isinstance(
            action, (SelectPlaylist, SelectActivePlaylist)
        ):
            return Mode.DOWNLOADING
        if current == Mode.DOWNLOADING and isinstance(action, DownloadFinished):
            return Mode.WAITING
        return current

    def apply(self, action: Action) -> bool:
        """Apply the transition for ``action``; return True if the mode changed."""
        target = self.next_mode(action)
        if target == self._current:
            return False
        if target == Mode.INPUT:
            self._return_to = self._current
        logger.info("Mode %s -> %s", self._current.value, target.value)
        self._current = target
        return True
