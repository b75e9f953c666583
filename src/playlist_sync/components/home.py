"""Menu, playlist picker, archive picker and folder prompt."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Optional, Sequence

from playlist_sync.action import (
    Action,
    BackHome,
    EnterDownloader,
    EnterEditing,
    EnterManager,
    GetDirs,
    MoveDown,
    MoveUp,
    Quit,
    QuitEditing,
    Resize,
    SelectActivePlaylist,
    SelectFolder,
    SelectPlaylist,
)
from playlist_sync.components.base import BODY, Component, Frame, Viewport, main_layout
from playlist_sync.keymap import KeyPress
from playlist_sync.mode import Mode
from playlist_sync.ui.rendering import centered_popup, render_list, render_title

if TYPE_CHECKING:
    from playlist_sync.config import AppConfig

logger = logging.getLogger(__name__)

MENU_ITEMS = ("Download Playlist", "Manage Downloads", "Change Folder", "Quit")
MENU_ACTIONS: tuple[Action, ...] = (
    EnterDownloader(),
    EnterManager(),
    EnterEditing(),
    Quit(),
)
DEFAULT_LIST_HEIGHT = 6

_TITLES = {
    Mode.HOME: "Playlist Sync",
    Mode.INPUT: "Choose your folder",
    Mode.DOWNLOADER: "Select a playlist to download",
    Mode.MANAGER: "Select a download to archive or restore",
    Mode.DOWNLOADING: "Running...",
    Mode.WAITING: "Finished",
}


def _home_dir() -> str:
    return os.environ.get("HOME", "")


class Home(Component):
    """List navigation and path entry.

    Keeps ``offset <= index <= offset + viewport_height - 1`` after every
    move, resize and list switch.
    """

    def __init__(
        self,
        playlists: Sequence[str] = (),
        *,
        folder: Optional[str] = None,
        list_height: int = DEFAULT_LIST_HEIGHT,
    ) -> None:
        super().__init__()
        self.menus = list(MENU_ITEMS)
        self.playlists = list(playlists)
        self.dirs: list[str] = []
        self.folder = folder or ""
        self.key_input = self.folder or _home_dir()
        self.index = 0
        self.offset = 0
        self._items: list[str] = self.menus
        self._list_height = max(1, list_height)
        self.viewport_height = self._list_height

    # --- Selection helpers ---
    @property
    def items(self) -> list[str]:
        return self._items

    def move_up(self) -> None:
        if self.index > 0:
            self.index -= 1
            self._reflow()

    def move_down(self) -> None:
        if self.index < len(self._items) - 1:
            self.index += 1
            self._reflow()

    def _show(self, items: list[str]) -> None:
        self._items = items
        self.index = 0
        self.offset = 0

    def _reflow(self) -> None:
        height = self.viewport_height
        if self.index < self.offset:
            self.offset = self.index
        elif self.index > self.offset + height - 1:
            self.offset = self.index - height + 1

    def _fit_viewport(self, area: Viewport) -> None:
        # Two rows go to the list border.
        available = max(1, area.height - 2)
        self.viewport_height = min(self._list_height, available)
        self._reflow()

    # --- Component contract ---
    def register_config(self, config: "AppConfig") -> None:
        super().register_config(config)
        self._list_height = max(1, config.list_height)
        self.viewport_height = self._list_height

    def init(self, area: Viewport) -> None:
        self._fit_viewport(area)

    def handle_key_event(self, key: KeyPress) -> Optional[Action]:
        mode = self.mode
        if mode == Mode.INPUT:
            return self._handle_input_key(key)
        if mode in (Mode.HOME, Mode.DOWNLOADER, Mode.MANAGER):
            if key.key in ("up", "k"):
                return MoveUp()
            if key.key in ("down", "j"):
                return MoveDown()
        if key.key != "enter":
            return None
        if mode == Mode.HOME:
            return MENU_ACTIONS[self.index] if self.index < len(MENU_ACTIONS) else None
        if mode == Mode.DOWNLOADER and self.playlists:
            return SelectPlaylist(self.index)
        if mode == Mode.MANAGER and self.dirs:
            return SelectActivePlaylist(self.index)
        if mode == Mode.WAITING:
            return BackHome()
        return None

    def _handle_input_key(self, key: KeyPress) -> Optional[Action]:
        if key.key == "enter":
            return SelectFolder(self.key_input.strip())
        if key.key == "escape":
            return QuitEditing()
        if key.key == "backspace":
            self.key_input = self.key_input[:-1]
            return None
        if key.is_printable:
            self.key_input += key.character or ""
        return None

    def update(self, action: Action) -> Optional[Action]:
        if isinstance(action, MoveUp):
            self.move_up()
        elif isinstance(action, MoveDown):
            self.move_down()
        elif isinstance(action, EnterDownloader):
            self._show(self.playlists)
        elif isinstance(action, EnterManager):
            self._show(self.dirs)
        elif isinstance(action, GetDirs):
            self.dirs = list(action.names)
            self._show(self.dirs)
        elif isinstance(action, EnterEditing):
            self.key_input = self.folder or _home_dir()
        elif isinstance(action, SelectFolder):
            logger.info("Folder selected: %s", action.path)
            self.folder = action.path
            self.key_input = ""
            self._show(self.menus)
        elif isinstance(action, QuitEditing):
            self.key_input = ""
        elif isinstance(action, BackHome):
            self._show(self.menus)
        elif isinstance(action, Resize):
            self._fit_viewport(main_layout(action.width, action.height)[BODY])
        return None

    def draw(self, frame: Frame) -> None:
        mode = self.mode
        frame.render(render_title(_TITLES.get(mode, ""), frame.title.width), frame.title)
        area = frame.body
        if mode == Mode.INPUT:
            frame.render(
                centered_popup(
                    "Choose your folder",
                    self.key_input + "_",
                    width=area.width,
                    height=area.height,
                ),
                area,
            )
            return
        if mode not in (Mode.HOME, Mode.DOWNLOADER, Mode.MANAGER):
            return
        title = {
            Mode.HOME: f"Folder: {self.folder or '-'}",
            Mode.DOWNLOADER: "Playlists",
            Mode.MANAGER: "Downloads",
        }[mode]
        frame.render(
            render_list(
                self._items,
                index=self.index,
                offset=self.offset,
                height=self.viewport_height,
                width=area.width,
                title=title,
            ),
            area,
        )
