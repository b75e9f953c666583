"""Textual front-end: feeds terminal events to the dispatcher and shows its frames."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from rich.console import Group
from textual import events
from textual.app import App, ComposeResult
from textual.widgets import Static

from playlist_sync.action import Render, Resize, Tick
from playlist_sync.catalog import CatalogClient, PlaylistItem
from playlist_sync.components.base import BODY, STATUS, TITLE, Component, Frame
from playlist_sync.components.catalog import Catalog
from playlist_sync.components.download import Download
from playlist_sync.components.home import Home
from playlist_sync.components.manager import Manager
from playlist_sync.components.settings import Settings
from playlist_sync.components.status import StatusBar
from playlist_sync.config import AppConfig, resolve_bindings
from playlist_sync.dispatch import Dispatcher, Event
from playlist_sync.hangwatch import LoopWatchdog
from playlist_sync.keymap import KeyPress, KeyResolver
from playlist_sync.logging_setup import set_console_level
from playlist_sync.mode import Mode, ModeMachine
from playlist_sync.ui.help_modal import HelpModal, HelpRow

logger = logging.getLogger(__name__)


def build_components(
    client: CatalogClient,
    items: Sequence[PlaylistItem],
    config: AppConfig,
    *,
    folder: Optional[str] = None,
) -> list[Component]:
    """Create the fixed component set in registration order."""
    return [
        Home(
            [item.name for item in items],
            folder=folder,
            list_height=config.list_height,
        ),
        StatusBar(),
        Download(config.max_output_lines),
        Catalog(client, items=items, folder=folder),
        Manager(folder=folder),
        Settings(),
    ]


def key_press_from_event(event: events.Key) -> KeyPress:
    """Translate a Textual key event; printable keys are named by their character."""
    character = event.character
    if (
        character
        and len(character) == 1
        and character.isprintable()
        and not character.isspace()
    ):
        return KeyPress(character, character)
    return KeyPress(event.key, character)


class PlaylistSyncApp(App[int], inherit_bindings=False):
    """Rendering surface and event source for the dispatcher."""

    TITLE = "Playlist Sync"
    ENABLE_COMMAND_PALETTE = False
    BINDINGS = []
    CSS = """
    #title {
        height: 1;
        background: $primary-background;
    }
    #body {
        height: 1fr;
    }
    #status {
        height: 1;
    }
    """

    def __init__(
        self,
        components: Sequence[Component],
        config: Optional[AppConfig] = None,
        *,
        initial_mode: Mode = Mode.INPUT,
        watchdog: bool = True,
    ) -> None:
        super().__init__()
        self.app_config = config or AppConfig()
        self.dispatcher = Dispatcher(
            components,
            self,
            resolver=KeyResolver(resolve_bindings(self.app_config)),
            machine=ModeMachine(initial_mode),
            config=self.app_config,
        )
        self._use_watchdog = watchdog
        self._watchdog: Optional[LoopWatchdog] = None
        self._title_view: Optional[Static] = None
        self._body_view: Optional[Static] = None
        self._status_view: Optional[Static] = None

    # --- Widget composition ---
    def compose(self) -> ComposeResult:
        yield Static(id="title")
        yield Static(id="body")
        yield Static(id="status")

    # --- Renderer ---
    def viewport_size(self) -> tuple[int, int]:
        size = self.size
        return size.width, size.height

    def draw_frame(self, frame: Frame) -> None:
        for widget, name in (
            (self._title_view, TITLE),
            (self._body_view, BODY),
            (self._status_view, STATUS),
        ):
            if widget is None:
                continue
            layers = frame.layers.get(name)
            widget.update(Group(*layers) if layers else "")

    def resize_surface(self, width: int, height: int) -> None:
        logger.debug("Terminal resized to %sx%s", width, height)

    def suspend_terminal(self) -> None:
        logger.info("Suspending")
        self.action_suspend_process()

    def show_help(self, rows: list[HelpRow]) -> None:
        if isinstance(self.screen, HelpModal):
            return
        self.push_screen(HelpModal(rows))

    # --- Event handlers ---
    def on_mount(self) -> None:
        self._title_view = self.query_one("#title", Static)
        self._body_view = self.query_one("#body", Static)
        self._status_view = self.query_one("#status", Static)
        self.dispatcher.start()
        self.set_interval(1.0 / self.app_config.tick_rate, self._on_tick)
        self.set_interval(1.0 / self.app_config.frame_rate, self._on_render)
        if self._use_watchdog:
            self._watchdog = LoopWatchdog(lambda: self.dispatcher.last_drain)
            self._watchdog.start()
        self._step(Render())
        logger.info("TUI mounted")

    def on_unmount(self) -> None:
        if self._watchdog is not None:
            self._watchdog.stop()
        self.dispatcher.stop()
        logger.info("TUI unmounted")

    def on_key(self, event: events.Key) -> None:
        if isinstance(self.screen, HelpModal):
            return
        event.stop()
        self._step(key_press_from_event(event))

    def on_resize(self, event: events.Resize) -> None:
        self._step(Resize(event.size.width, event.size.height))

    def _on_tick(self) -> None:
        self._step(Tick())

    def _on_render(self) -> None:
        self._step(Render())

    def _step(self, event: Event) -> None:
        if self.dispatcher.should_quit:
            return
        self.dispatcher.step(event)
        if self.dispatcher.should_quit:
            logger.info("Quit requested")
            self.exit(0)


def run_tui(
    client: CatalogClient,
    items: Sequence[PlaylistItem],
    config: AppConfig,
    *,
    folder: Optional[str] = None,
) -> int:
    """Run the TUI and return an exit code."""
    logger.info("TUI start folder=%s playlists=%d", folder, len(items))
    set_console_level(logging.WARNING)
    initial_mode = Mode.HOME if folder else Mode.INPUT
    components = build_components(
        client, items, config, folder=folder or config.download_dir
    )
    app = PlaylistSyncApp(components, config, initial_mode=initial_mode)
    result = app.run()
    logger.info("TUI exit")
    return result or 0
