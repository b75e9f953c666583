"""Help modal listing the key bindings of every mode."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from playlist_sync.mode import Mode

HelpRow = tuple[Mode, str, str]

_ACTION_LABELS: dict[str, str] = {
    "BackHome": "Back to menu",
    "EnterDownloader": "Download a playlist",
    "EnterManager": "Manage downloads",
    "EnterEditing": "Change folder",
    "Help": "Open help",
    "Save": "Save settings",
    "Suspend": "Suspend",
    "Quit": "Quit",
}

_NAVIGATION_HELP = "↑/k Up | ↓/j Down | Enter Select"


def _format_key(key: str) -> str:
    key_map = {
        "left": "←",
        "right": "→",
        "up": "↑",
        "down": "↓",
        "space": "Space",
        "enter": "Enter",
        "escape": "Esc",
    }
    if key in key_map:
        return key_map[key]
    formatted: list[str] = []
    for part in key.split("+"):
        formatted.append(part.upper() if len(part) == 1 else part.capitalize())
    return "+".join(formatted)


def _format_sequence(keys: str) -> str:
    return " ".join(_format_key(key) for key in keys.split())


def build_help_text(rows: Iterable[HelpRow]) -> Text:
    by_mode: dict[Mode, dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))
    for mode, keys, action in rows:
        by_mode[mode][action].append(_format_sequence(keys))

    content = Text()
    content.append("Lists\n", style="bold #5fc9d6")
    content.append(f"{_NAVIGATION_HELP}\n")
    for mode in Mode:
        actions = by_mode.get(mode)
        if not actions:
            continue
        content.append("\n")
        content.append(f"{mode.value}\n", style="bold #5fc9d6")
        for action, keys in actions.items():
            label = _ACTION_LABELS.get(action, action)
            content.append(f"{', '.join(keys)} — {label}\n")
    content.append("\n")
    content.append(
        "Logs — %LOCALAPPDATA%/PlaylistSync/logs or ~/.playlist_sync/logs\n"
    )
    return content


class HelpModal(ModalScreen[None]):
    """Help modal listing keybinds and usage."""

    DEFAULT_CSS = """
    HelpModal {
        align: center middle;
    }
    #help_modal {
        width: 70%;
        height: 80%;
        border: round #5fc9d6;
        background: $surface;
        padding: 0 1;
    }
    #help_title {
        text-style: bold;
    }
    #help_footer {
        height: 3;
    }
    """

    def __init__(self, rows: Iterable[HelpRow]) -> None:
        super().__init__()
        self._rows = list(rows)

    def compose(self) -> ComposeResult:
        with Vertical(id="help_modal"):
            yield Static("Playlist Sync Help", id="help_title")
            with VerticalScroll(id="help_scroll"):
                yield Static(build_help_text(self._rows), id="help_content")
            with Horizontal(id="help_footer"):
                yield Static("Esc/q — Close", id="help_hint")
                yield Button("Close", id="help_close")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "help_close":
            self.dismiss(None)

    def on_key(self, event: events.Key) -> None:
        if event.key in {"escape", "q"}:
            event.stop()
            self.dismiss(None)
