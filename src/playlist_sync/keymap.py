"""Mode-scoped key bindings and multi-key chord resolution."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Any, Mapping, Optional

from playlist_sync.action import Action, action_from_data, action_name
from playlist_sync.mode import Mode

logger = logging.getLogger(__name__)

KeySequence = tuple[str, ...]
Bindings = dict[Mode, dict[KeySequence, Action]]

_ANGLE_KEYS = re.compile(r"<([^<>]+)>")


@dataclass(frozen=True)
class KeyPress:
    """A single key press from the terminal.

    ``key`` is the terminal key name (``"up"``, ``"enter"``, ``"ctrl+c"``,
    ``"g"``); ``character`` is the printable character, if any.
    """

    key: str
    character: Optional[str] = None

    @property
    def is_printable(self) -> bool:
        return bool(self.character) and self.character.isprintable()  # type: ignore[union-attr]


DEFAULT_KEYBINDINGS: dict[str, dict[str, str]] = {
    "Home": {
        "q": "Quit",
        "ctrl+c": "Quit",
        "ctrl+z": "Suspend",
        "?": "Help",
        "e": "EnterEditing",
        "ctrl+s": "Save",
    },
    "Input": {
        "ctrl+c": "Quit",
    },
    "Downloader": {
        "ctrl+c": "Quit",
        "escape": "BackHome",
        "q": "BackHome",
        "?": "Help",
        "g h": "BackHome",
        "g m": "EnterManager",
    },
    "Manager": {
        "ctrl+c": "Quit",
        "escape": "BackHome",
        "q": "BackHome",
        "?": "Help",
        "g h": "BackHome",
        "g d": "EnterDownloader",
    },
    "Downloading": {
        "ctrl+c": "Quit",
    },
    "Waiting": {
        "ctrl+c": "Quit",
        "q": "Quit",
        "escape": "BackHome",
    },
}


def parse_key_sequence(text: str) -> KeySequence:
    """Parse ``"g h"`` or ``"<g><h>"`` into a key sequence."""
    text = text.strip()
    if text.startswith("<"):
        keys = _ANGLE_KEYS.findall(text)
        if not keys or "".join(f"<{key}>" for key in keys) != text:
            raise ValueError(f"Invalid key sequence: {text!r}")
    else:
        keys = text.split()
    if not keys:
        raise ValueError("Empty key sequence")
    return tuple(_normalize_key(key) for key in keys)


def _normalize_key(key: str) -> str:
    key = key.strip()
    if len(key) == 1:
        return key
    return key.lower().replace("-", "+")


def parse_keybindings(raw: Mapping[str, Any]) -> Bindings:
    """Build a binding table from ``{mode: {keys: action}}`` data."""
    bindings: Bindings = {}
    for mode_name, keymap in raw.items():
        try:
            mode = Mode.parse(mode_name)
        except ValueError as exc:
            raise ValueError(f"Invalid keybindings: {exc}") from exc
        if not isinstance(keymap, Mapping):
            raise ValueError(f"Invalid keybindings for mode {mode_name!r}")
        table = bindings.setdefault(mode, {})
        for keys, action_data in keymap.items():
            try:
                table[parse_key_sequence(keys)] = action_from_data(action_data)
            except ValueError as exc:
                raise ValueError(f"Invalid binding {mode_name}/{keys!r}: {exc}") from exc
    return bindings


def merge_bindings(base: Bindings, overrides: Bindings) -> Bindings:
    """Overlay ``overrides`` on ``base`` per mode and key sequence."""
    merged: Bindings = {mode: dict(table) for mode, table in base.items()}
    for mode, table in overrides.items():
        merged.setdefault(mode, {}).update(table)
    return merged


def default_bindings() -> Bindings:
    return parse_keybindings(DEFAULT_KEYBINDINGS)


def describe_bindings(bindings: Bindings) -> list[tuple[Mode, str, str]]:
    """Flatten bindings into ``(mode, keys, action name)`` rows."""
    rows: list[tuple[Mode, str, str]] = []
    for mode in Mode:
        for keys, action in bindings.get(mode, {}).items():
            rows.append((mode, " ".join(keys), action_name(action)))
    return rows


class KeyResolver:
    """Resolve key presses against the bindings of the current mode.

    A key bound on its own wins immediately and leaves the sequence buffer
    untouched. Otherwise the key is appended and the whole buffer is matched
    against chords. Only :meth:`clear` (called on every tick) empties the
    buffer, even after a chord fired.
    """

    def __init__(self, bindings: Optional[Bindings] = None) -> None:
        self._bindings: Bindings = bindings if bindings is not None else {}
        self._buffer: list[str] = []

    @property
    def bindings(self) -> Bindings:
        return self._bindings

    @property
    def buffer(self) -> KeySequence:
        return tuple(self._buffer)

    def resolve(self, mode: Mode, key: KeyPress) -> Optional[Action]:
        keymap = self._bindings.get(mode)
        if not keymap:
            return None
        action = keymap.get((key.key,))
        if action is not None:
            logger.info("Got action: %s", action)
            return action
        self._buffer.append(key.key)
        action = keymap.get(tuple(self._buffer))
        if action is not None:
            logger.info("Got action: %s", action)
        return action

    def clear(self) -> None:
        self._buffer.clear()
