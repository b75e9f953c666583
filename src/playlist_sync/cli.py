"""Command-line interface for playlist-sync."""

from __future__ import annotations

import argparse
from dataclasses import replace
import logging
from pathlib import Path
import sys
import threading
from types import TracebackType
from typing import Iterable, Optional, Tuple

from playlist_sync.catalog import (
    CatalogClient,
    CatalogError,
    PlaylistItem,
    SpotifyCatalog,
    StaticCatalog,
)
from playlist_sync.config import AppConfig, load_config
from playlist_sync.hangwatch import dump_threads, enable_faulthandler
from playlist_sync.logging_setup import init_logging

logger = logging.getLogger(__name__)


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="playlist-sync",
        description="Download, sync and archive your playlists",
    )
    parser.add_argument(
        "folder",
        nargs="?",
        default=None,
        help="Download folder (skips the folder prompt)",
    )
    parser.add_argument(
        "--catalog-file",
        type=Path,
        default=None,
        help="Read playlists from a JSON file instead of Spotify",
    )
    parser.add_argument(
        "--tick-rate",
        type=_positive_float,
        default=None,
        help="Ticks per second (clears pending key chords)",
    )
    parser.add_argument(
        "--frame-rate",
        type=_positive_float,
        default=None,
        help="Redraws per second",
    )
    return parser


def _install_excepthooks() -> None:
    def excepthook(exc_type, exc, tb) -> None:
        logger.exception("Uncaught exception", exc_info=(exc_type, exc, tb))
        dump_threads("uncaught exception")

    sys.excepthook = excepthook

    def thread_hook(args: threading.ExceptHookArgs) -> None:
        exc_value = args.exc_value or RuntimeError("unknown")
        exc_info: Tuple[type[BaseException], BaseException, Optional[TracebackType]] = (
            args.exc_type,
            exc_value,
            args.exc_traceback,
        )
        thread_name = args.thread.name if args.thread else "thread"
        logger.exception("Thread exception in %s", thread_name, exc_info=exc_info)

    threading.excepthook = thread_hook


def _open_catalog(
    catalog_file: Optional[Path],
) -> tuple[CatalogClient, list[PlaylistItem]]:
    client: CatalogClient
    if catalog_file is not None:
        client = StaticCatalog.from_file(catalog_file)
    else:
        client = SpotifyCatalog()
    return client, client.list_items()


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    if args.tick_rate is not None:
        config = replace(config, tick_rate=args.tick_rate)
    if args.frame_rate is not None:
        config = replace(config, frame_rate=args.frame_rate)
    return config


def _run_tui(
    client: CatalogClient,
    items: list[PlaylistItem],
    config: AppConfig,
    folder: Optional[str],
) -> int:
    try:
        from playlist_sync.tui import run_tui
    except ImportError as exc:
        print(f"Terminal UI is unavailable: {exc}", file=sys.stderr)
        return 1
    return run_tui(client, items, config, folder=folder)


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    log_path = init_logging()
    enable_faulthandler(log_path)
    _install_excepthooks()
    logger.info("App start")

    config = _apply_overrides(load_config(), args)
    try:
        client, items = _open_catalog(args.catalog_file)
    except CatalogError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    exit_code = _run_tui(client, items, config, args.folder)
    logger.info("App exit code=%s", exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
