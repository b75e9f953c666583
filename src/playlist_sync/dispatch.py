"""The dispatch loop: routes events and actions through the components."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Protocol, Sequence, Union

from playlist_sync.action import (
    Action,
    Error,
    Help,
    Quit,
    Refresh,
    Render,
    Resize,
    Resume,
    Suspend,
    Tick,
)
from playlist_sync.bus import ActionBus
from playlist_sync.components.base import BODY, Component, Frame, main_layout
from playlist_sync.keymap import KeyPress, KeyResolver, describe_bindings
from playlist_sync.mode import Mode, ModeMachine
from playlist_sync.process import ProcessError

if TYPE_CHECKING:
    from playlist_sync.config import AppConfig

logger = logging.getLogger(__name__)

Event = Union[KeyPress, Action]


class Renderer(Protocol):
    """Terminal surface the loop draws on."""

    def viewport_size(self) -> tuple[int, int]: ...

    def draw_frame(self, frame: Frame) -> None: ...

    def resize_surface(self, width: int, height: int) -> None: ...

    def suspend_terminal(self) -> None: ...

    def show_help(self, rows: list[tuple[Mode, str, str]]) -> None: ...


class Dispatcher:
    """Single-threaded owner of the mode and the component list.

    Every external event is followed by a drain of the bus to exhaustion;
    actions produced during the drain are handled in the same pass. Process
    workers only ever touch the bus.
    """

    def __init__(
        self,
        components: Sequence[Component],
        renderer: Renderer,
        *,
        bus: Optional[ActionBus] = None,
        resolver: Optional[KeyResolver] = None,
        machine: Optional[ModeMachine] = None,
        config: Optional["AppConfig"] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.components = list(components)
        self.renderer = renderer
        self.bus = bus or ActionBus()
        self.resolver = resolver or KeyResolver()
        self.machine = machine or ModeMachine()
        self.config = config
        self.should_quit = False
        self.should_suspend = False
        self._clock = clock
        self.last_drain = clock()

    @property
    def mode(self) -> Mode:
        return self.machine.current

    def start(self) -> None:
        """Hand the bus and config to every component and size them."""
        for component in self.components:
            component.register_action_sender(self.bus)
        if self.config is not None:
            for component in self.components:
                component.register_config(self.config)
        self._sync_modes()
        width, height = self.renderer.viewport_size()
        area = main_layout(width, height)[BODY]
        for component in self.components:
            component.init(area)
        logger.info(
            "Dispatcher started: %d components, mode %s",
            len(self.components),
            self.mode.value,
        )

    def stop(self) -> None:
        self.bus.close()

    # --- Events ---
    def step(self, event: Event) -> None:
        """Feed one external event and drain the bus."""
        if isinstance(event, KeyPress):
            self.handle_key(event)
        else:
            self.bus.send(event)
        self.drain()
        if self.should_suspend and not self.should_quit:
            self.renderer.suspend_terminal()
            self.bus.send(Resume())
            self.drain()

    def run(self, events: Iterable[Event]) -> None:
        """Feed events until one of them leads to ``Quit``."""
        for event in events:
            self.step(event)
            if self.should_quit:
                break

    def handle_key(self, key: KeyPress) -> None:
        action = self.resolver.resolve(self.mode, key)
        if action is not None:
            self.bus.send(action)
        self._sync_modes()
        for component in self.components:
            follow_up = component.handle_key_event(key)
            if follow_up is not None:
                self.bus.send(follow_up)

    # --- Actions ---
    def drain(self) -> None:
        while True:
            action = self.bus.try_receive()
            if action is None:
                break
            self.process(action)
        self.last_drain = self._clock()

    def process(self, action: Action) -> None:
        if not isinstance(action, (Tick, Render)):
            logger.debug("Action: %s", action)
        if isinstance(action, Tick):
            self.resolver.clear()
        elif isinstance(action, Quit):
            self.should_quit = True
        elif isinstance(action, Suspend):
            self.should_suspend = True
        elif isinstance(action, Resume):
            self.should_suspend = False
        elif isinstance(action, Resize):
            self.renderer.resize_surface(action.width, action.height)
        elif isinstance(action, Help):
            self.renderer.show_help(describe_bindings(self.resolver.bindings))

        self._sync_modes()
        try:
            for component in self.components:
                follow_up = component.update(action)
                if follow_up is not None:
                    self.bus.send(follow_up)
        except ProcessError as exc:
            logger.warning("Operation failed: %s", exc)
            self.bus.send(Error(str(exc)))
            return

        if self.machine.apply(action):
            self._sync_modes()
        if isinstance(action, (Render, Resize, Refresh)):
            self.render()

    def render(self) -> None:
        width, height = self.renderer.viewport_size()
        frame = Frame.for_size(width, height)
        self._sync_modes()
        for component in self.components:
            try:
                component.draw(frame)
            except Exception as exc:
                logger.exception("Failed to draw %s", type(component).__name__)
                self.bus.send(Error(f"Failed to draw: {exc}"))
        self.renderer.draw_frame(frame)

    def _sync_modes(self) -> None:
        mode = self.machine.current
        for component in self.components:
            component.mode = mode
