from __future__ import annotations

from rich.console import Console
from rich.panel import Panel

from playlist_sync.ui.rendering import (
    centered_popup,
    render_list,
    render_output,
    render_title,
    truncate_line,
)


def _plain(renderable, width: int = 40) -> str:
    console = Console(width=width, record=True, color_system=None)
    console.print(renderable)
    return console.export_text()


def test_truncate_line() -> None:
    assert truncate_line("hello", 0) == ""
    assert truncate_line("hello", 10) == "hello"
    assert truncate_line("hello", 1) == "h"
    assert truncate_line("hello", 4) == "hel…"


def test_render_list_shows_window_only() -> None:
    items = [f"item {n}" for n in range(10)]
    panel = render_list(items, index=4, offset=3, height=3, width=40, title="Playlists")
    assert isinstance(panel, Panel)
    text = _plain(panel)
    assert "item 3" in text
    assert "item 5" in text
    assert "item 6" not in text
    assert "Playlists" in text


def test_render_list_empty() -> None:
    assert "(empty)" in _plain(render_list([], index=0, offset=0, height=3, width=40))


def test_render_output_shows_tail() -> None:
    lines = [f"line {n}" for n in range(20)]
    text = _plain(render_output(lines, height=5, width=40))
    assert "line 19" in text
    assert "line 17" in text
    assert "line 16" not in text


def test_centered_popup_contains_input() -> None:
    text = _plain(centered_popup("Choose", "/music_", width=40, height=5))
    assert "/music_" in text


def test_render_title() -> None:
    assert render_title("Playlist Sync", 8).plain == "Playlis…"
