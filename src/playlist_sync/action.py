"""Actions flowing through the action bus."""

from __future__ import annotations

from dataclasses import astuple, dataclass, fields
from typing import Any, Optional


@dataclass(frozen=True)
class Action:
    """Base class for every event the application reacts to."""


# --- Lifecycle ---
@dataclass(frozen=True)
class Tick(Action):
    pass


@dataclass(frozen=True)
class Render(Action):
    pass


@dataclass(frozen=True)
class Resize(Action):
    width: int
    height: int


@dataclass(frozen=True)
class Suspend(Action):
    pass


@dataclass(frozen=True)
class Resume(Action):
    pass


@dataclass(frozen=True)
class Quit(Action):
    pass


@dataclass(frozen=True)
class Refresh(Action):
    pass


@dataclass(frozen=True)
class Error(Action):
    message: str


@dataclass(frozen=True)
class Help(Action):
    pass


# --- Navigation ---
@dataclass(frozen=True)
class MoveUp(Action):
    pass


@dataclass(frozen=True)
class MoveDown(Action):
    pass


@dataclass(frozen=True)
class EnterEditing(Action):
    pass


@dataclass(frozen=True)
class QuitEditing(Action):
    pass


@dataclass(frozen=True)
class BackHome(Action):
    pass


@dataclass(frozen=True)
class Save(Action):
    pass


# --- Screen entry ---
@dataclass(frozen=True)
class EnterDownloader(Action):
    pass


@dataclass(frozen=True)
class EnterManager(Action):
    pass


# --- Selection ---
@dataclass(frozen=True)
class SelectPlaylist(Action):
    """Start a download/sync of the playlist at ``index``.

    ``path`` overrides the root folder committed through ``SelectFolder``.
    """

    index: int
    path: Optional[str] = None


@dataclass(frozen=True)
class SelectActivePlaylist(Action):
    index: int


@dataclass(frozen=True)
class SelectFolder(Action):
    path: str


# --- Process results ---
@dataclass(frozen=True)
class Downloading(Action):
    line: str


@dataclass(frozen=True)
class DownloadFinished(Action):
    pass


@dataclass(frozen=True)
class GetDirs(Action):
    names: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", tuple(self.names))


ACTION_TYPES: dict[str, type[Action]] = {
    cls.__name__: cls
    for cls in (
        Tick,
        Render,
        Resize,
        Suspend,
        Resume,
        Quit,
        Refresh,
        Error,
        Help,
        MoveUp,
        MoveDown,
        EnterEditing,
        QuitEditing,
        BackHome,
        Save,
        EnterDownloader,
        EnterManager,
        SelectPlaylist,
        SelectActivePlaylist,
        SelectFolder,
        Downloading,
        DownloadFinished,
        GetDirs,
    )
}


def action_name(action: Action) -> str:
    """Return the variant name of an action."""
    return type(action).__name__


def action_to_data(action: Action) -> Any:
    """Serialize an action to JSON-compatible data."""
    if not fields(action):
        return action_name(action)
    values = [list(value) if isinstance(value, tuple) else value for value in astuple(action)]
    return {action_name(action): values}


def action_from_data(data: Any) -> Action:
    """Build an action from ``"Name"`` or ``{"Name": [args...]}``."""
    if isinstance(data, str):
        name, args = data, []
    elif isinstance(data, dict) and len(data) == 1:
        name, raw_args = next(iter(data.items()))
        args = list(raw_args) if isinstance(raw_args, (list, tuple)) else [raw_args]
    else:
        raise ValueError(f"Invalid action: {data!r}")
    cls = ACTION_TYPES.get(name)
    if cls is None:
        raise ValueError(f"Unknown action: {name!r}")
    try:
        return cls(*args)
    except TypeError as exc:
        raise ValueError(f"Invalid arguments for {name}: {args!r}") from exc
