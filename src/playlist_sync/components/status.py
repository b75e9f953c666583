"""Status line: transient messages over per-mode key hints."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Callable, Optional

from rich.text import Text

from playlist_sync.action import Action, DownloadFinished, Error, Save, SelectFolder
from playlist_sync.components.base import Component, Frame
from playlist_sync.mode import Mode
from playlist_sync.ui.rendering import truncate_line

logger = logging.getLogger(__name__)

_LEVEL_STYLES = {"warn": "#ffcc66", "error": "#ff5f52"}

_HINTS = {
    Mode.HOME: "↑↓: navigate  Enter: select  e: change folder  ?: help  q: quit",
    Mode.INPUT: "Enter: confirm  Esc: cancel",
    Mode.DOWNLOADER: "↑↓: navigate  Enter: download  Esc: back  ?: help",
    Mode.MANAGER: "↑↓: navigate  Enter: archive/restore  Esc: back  ?: help",
    Mode.DOWNLOADING: "Working...  Ctrl+C: quit",
    Mode.WAITING: "Enter: back to menu  q: quit",
}


@dataclass(frozen=True)
class StatusMessage:
    text: str
    level: str = "info"
    until: Optional[float] = None


class StatusBar(Component):
    """Shows the latest message until it expires, then the mode's key hint."""

    def __init__(self, now: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._now = now
        self._message: Optional[StatusMessage] = None

    def show_message(
        self,
        text: str,
        *,
        level: str = "info",
        timeout: Optional[float] = None,
    ) -> None:
        if timeout is None:
            timeout = 6.0 if level in _LEVEL_STYLES else 3.0
        until = None if timeout == 0 else self._now() + max(0.0, timeout)
        self._message = StatusMessage(text=text, level=level, until=until)

    def clear_message(self) -> None:
        self._message = None

    def current_message(self) -> Optional[StatusMessage]:
        message = self._message
        if message is None:
            return None
        if message.until is None or message.until > self._now():
            return message
        return None

    def update(self, action: Action) -> Optional[Action]:
        if isinstance(action, Error):
            logger.error("Error: %s", action.message)
            self.show_message(action.message, level="error")
        elif isinstance(action, DownloadFinished):
            self.show_message("Operation finished")
        elif isinstance(action, Save):
            self.show_message("Settings saved")
        elif isinstance(action, SelectFolder):
            self.show_message(f"Folder set to {action.path}")
        elif self._message is not None and self.current_message() is None:
            self._message = None
        return None

    def render_line(self, width: int) -> Text:
        message = self.current_message()
        if message is not None:
            line = truncate_line(message.text, width)
            style = _LEVEL_STYLES.get(message.level)
            return Text(line, style=style) if style else Text(line)
        return Text(truncate_line(_HINTS.get(self.mode, ""), width), style="dim")

    def draw(self, frame: Frame) -> None:
        frame.render(self.render_line(frame.status.width), frame.status)
