"""Configuration persistence for playlist-sync."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from playlist_sync.keymap import (
    Bindings,
    default_bindings,
    merge_bindings,
    parse_keybindings,
)

logger = logging.getLogger(__name__)

DEFAULT_TICK_RATE = 4.0
DEFAULT_FRAME_RATE = 15.0


@dataclass(frozen=True)
class AppConfig:
    """Immutable user configuration loaded from disk."""

    download_dir: Optional[str] = None
    tick_rate: float = DEFAULT_TICK_RATE
    frame_rate: float = DEFAULT_FRAME_RATE
    list_height: int = 6
    max_output_lines: int = 1000
    spotdl_command: str = "spotdl"
    zip_command: str = "zip"
    unzip_command: str = "unzip"
    keybindings: dict[str, Any] = field(default_factory=dict, hash=False)

    def with_folder(self, folder: Optional[str]) -> "AppConfig":
        return replace(self, download_dir=folder or None)


def get_config_dir(app_name: str = "playlist-sync") -> Path:
    """Return the per-user config directory for the current platform."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Roaming"
        return _ensure_dir(root / app_name)
    if os.name == "posix" and _is_macos():
        return _ensure_dir(Path.home() / "Library" / "Application Support" / app_name)
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return _ensure_dir(root / app_name)


def get_config_path() -> Path:
    """Return the full config file path."""
    return get_config_dir() / "config.json"


def load_config() -> AppConfig:
    """Load configuration from disk, falling back to defaults on error."""
    path = get_config_path()
    if not path.exists():
        return AppConfig()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.exception("Failed to load config from %s", path)
        return AppConfig()
    if not isinstance(raw, dict):
        logger.warning("Ignoring config %s: expected an object", path)
        return AppConfig()
    return _config_from_mapping(raw)


def save_config(cfg: AppConfig) -> None:
    """Persist configuration to disk atomically."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    data = {
        "download_dir": cfg.download_dir,
        "tick_rate": cfg.tick_rate,
        "frame_rate": cfg.frame_rate,
        "list_height": cfg.list_height,
        "max_output_lines": cfg.max_output_lines,
        "spotdl_command": cfg.spotdl_command,
        "zip_command": cfg.zip_command,
        "unzip_command": cfg.unzip_command,
        "keybindings": cfg.keybindings,
    }
    temp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    os.replace(temp_path, path)


def resolve_bindings(cfg: AppConfig) -> Bindings:
    """Return the default bindings overlaid with the user's.

    Invalid user bindings are logged and ignored as a whole.
    """
    bindings = default_bindings()
    if not cfg.keybindings:
        return bindings
    try:
        overrides = parse_keybindings(cfg.keybindings)
    except ValueError as exc:
        logger.warning("Ignoring keybindings from config: %s", exc)
        return bindings
    return merge_bindings(bindings, overrides)


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def _is_macos() -> bool:
    return os.uname().sysname == "Darwin" if hasattr(os, "uname") else False


def _get_int(
    raw: dict[str, Any],
    key: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Fetch an integer value with optional clamping."""
    value = raw.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool):
        value = default
    if min_value is not None:
        value = max(min_value, value)
    if max_value is not None:
        value = min(max_value, value)
    return value


def _get_float(
    raw: dict[str, Any],
    key: str,
    default: float,
    *,
    min_value: float,
    max_value: float,
) -> float:
    """Fetch a positive number; out-of-range values fall back to ``default``."""
    value = raw.get(key, default)
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return default
    if not min_value <= value <= max_value:
        return default
    return float(value)


def _get_str(
    raw: dict[str, Any],
    key: str,
    default: str,
    *,
    allow_empty: bool = False,
) -> str:
    value = raw.get(key, default)
    if not isinstance(value, str):
        return default
    if not value.strip() and not allow_empty:
        return default
    return value


def _config_from_mapping(raw: dict[str, Any]) -> AppConfig:
    """Normalize raw JSON data into an AppConfig."""
    download_dir = raw.get("download_dir")
    if not isinstance(download_dir, str) or not download_dir:
        download_dir = None
    keybindings = raw.get("keybindings")
    if not isinstance(keybindings, dict):
        keybindings = {}
    return AppConfig(
        download_dir=download_dir,
        tick_rate=_get_float(
            raw, "tick_rate", DEFAULT_TICK_RATE, min_value=0.1, max_value=100.0
        ),
        frame_rate=_get_float(
            raw, "frame_rate", DEFAULT_FRAME_RATE, min_value=0.1, max_value=120.0
        ),
        list_height=_get_int(raw, "list_height", 6, min_value=1, max_value=50),
        max_output_lines=_get_int(
            raw, "max_output_lines", 1000, min_value=10, max_value=100_000
        ),
        spotdl_command=_get_str(raw, "spotdl_command", "spotdl"),
        zip_command=_get_str(raw, "zip_command", "zip"),
        unzip_command=_get_str(raw, "unzip_command", "unzip"),
        keybindings=keybindings,
    )
