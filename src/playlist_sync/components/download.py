"""Viewer for the streamed output of the running operation."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Optional

from playlist_sync.action import (
    Action,
    BackHome,
    Downloading,
    SelectActivePlaylist,
    SelectPlaylist,
)
from playlist_sync.components.base import Component, Frame
from playlist_sync.mode import Mode
from playlist_sync.ui.rendering import render_output

if TYPE_CHECKING:
    from playlist_sync.config import AppConfig

DEFAULT_MAX_LINES = 1000


class Download(Component):
    """Accumulates ``Downloading`` lines; keeps only the newest ``max_lines``."""

    def __init__(self, max_lines: int = DEFAULT_MAX_LINES) -> None:
        super().__init__()
        self.output: deque[str] = deque(maxlen=max(1, max_lines))

    @property
    def text(self) -> str:
        return "\n".join(self.output)

    def register_config(self, config: "AppConfig") -> None:
        super().register_config(config)
        self.output = deque(self.output, maxlen=max(1, config.max_output_lines))

    def update(self, action: Action) -> Optional[Action]:
        if isinstance(action, Downloading):
            self.output.append(action.line)
        elif isinstance(action, (SelectPlaylist, SelectActivePlaylist, BackHome)):
            self.output.clear()
        return None

    def draw(self, frame: Frame) -> None:
        if self.mode not in (Mode.DOWNLOADING, Mode.WAITING):
            return
        area = frame.body
        frame.render(
            render_output(list(self.output), height=area.height, width=area.width),
            area,
        )
