"""Component contract shared by every screen."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from playlist_sync.action import Action
from playlist_sync.keymap import KeyPress
from playlist_sync.mode import Mode

if TYPE_CHECKING:
    from playlist_sync.bus import ActionBus
    from playlist_sync.config import AppConfig

TITLE = "title"
BODY = "body"
STATUS = "status"


@dataclass(frozen=True)
class Viewport:
    """A named rectangular drawing region."""

    name: str
    width: int
    height: int


def main_layout(width: int, height: int) -> dict[str, Viewport]:
    """Split the terminal into a title row, a body and a status row."""
    width = max(1, width)
    body_height = max(1, height - 2)
    return {
        TITLE: Viewport(TITLE, width, 1),
        BODY: Viewport(BODY, width, body_height),
        STATUS: Viewport(STATUS, width, 1),
    }


@dataclass
class Frame:
    """Renderables collected for one redraw, keyed by region name."""

    regions: dict[str, Viewport]
    layers: dict[str, list[Any]] = field(default_factory=dict)

    @classmethod
    def for_size(cls, width: int, height: int) -> "Frame":
        return cls(main_layout(width, height))

    @property
    def body(self) -> Viewport:
        return self.regions[BODY]

    @property
    def status(self) -> Viewport:
        return self.regions[STATUS]

    @property
    def title(self) -> Viewport:
        return self.regions[TITLE]

    def render(self, renderable: Any, area: Viewport) -> None:
        self.layers.setdefault(area.name, []).append(renderable)

    def top(self, area: Viewport) -> Optional[Any]:
        """Return the last renderable drawn into ``area``."""
        layer = self.layers.get(area.name)
        return layer[-1] if layer else None


class Component:
    """Base class for independently stateful screens.

    The dispatch loop assigns ``mode`` before every call; components read it
    but never change the loop's mode.
    """

    mode: Mode = Mode.HOME

    def __init__(self) -> None:
        self.bus: Optional[ActionBus] = None
        self.config: Optional[AppConfig] = None

    def register_action_sender(self, bus: "ActionBus") -> None:
        self.bus = bus

    def register_config(self, config: "AppConfig") -> None:
        self.config = config

    def init(self, area: Viewport) -> None:
        del area

    def handle_key_event(self, key: KeyPress) -> Optional[Action]:
        del key
        return None

    def update(self, action: Action) -> Optional[Action]:
        del action
        return None

    def draw(self, frame: Frame) -> None:
        del frame

    def send(self, action: Action) -> None:
        """Send a self-initiated action; no-op before registration."""
        if self.bus is not None:
            self.bus.send(action)
