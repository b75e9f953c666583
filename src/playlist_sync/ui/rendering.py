"""Rich renderables for the list, popup and output screens."""

from __future__ import annotations

from typing import Sequence

from rich.align import Align
from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text


SELECTED_STYLE = "black on yellow"
POPUP_STYLE = "black on white"
OUTPUT_STYLE = "white on black"


def truncate_line(text: str, width: int) -> str:
    """Cut ``text`` to ``width`` cells, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    return text[:1] if width == 1 else text[: width - 1] + "…"


def render_list(
    items: Sequence[str],
    *,
    index: int,
    offset: int,
    height: int,
    width: int,
    title: str | None = None,
) -> Panel:
    """Render the visible window of ``items`` with the selection highlighted."""
    inner_width = max(1, width - 4)
    lines = Text()
    visible = items[offset : offset + max(1, height)]
    for row, item in enumerate(visible):
        if row:
            lines.append("\n")
        label = truncate_line(item, inner_width).ljust(inner_width)
        if offset + row == index:
            lines.append(label, style=SELECTED_STYLE)
        else:
            lines.append(label)
    if not items:
        lines.append("(empty)", style="dim")
    return Panel(lines, title=title, title_align="left")


def centered_popup(
    title: str,
    content: str,
    *,
    width: int,
    height: int,
    percent_x: int = 60,
) -> RenderableType:
    """Center a one-line text box inside a ``width`` x ``height`` area."""
    box_width = max(10, width * percent_x // 100)
    text = Text(truncate_line(content, box_width - 4), style=POPUP_STYLE)
    panel = Panel(text, title=title, width=box_width, style=POPUP_STYLE)
    return Align.center(panel, vertical="middle", height=max(3, height))


def render_output(lines: Sequence[str], *, height: int, width: int) -> Panel:
    """Render the tail of the process output that fits in ``height`` rows."""
    rows = max(1, height - 2)
    inner_width = max(1, width - 4)
    tail = lines[-rows:] if lines else []
    text = Text("\n".join(truncate_line(line, inner_width) for line in tail))
    return Panel(text, title="Output", title_align="left", style=OUTPUT_STYLE)


def render_title(text: str, width: int) -> Text:
    return Text(truncate_line(text, width), style="bold")
