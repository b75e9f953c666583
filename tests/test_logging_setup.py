"""Tests for logging setup."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from playlist_sync import logging_setup


def test_default_log_dir_uses_local_appdata(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    assert logging_setup._default_log_dir() == tmp_path / "PlaylistSync" / "logs"


def test_default_log_dir_falls_back_to_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("LOCALAPPDATA", raising=False)
    monkeypatch.setattr(logging_setup.Path, "home", lambda: tmp_path)
    assert logging_setup._default_log_dir() == tmp_path / ".playlist_sync" / "logs"


def test_init_logging_creates_handlers_once(monkeypatch, tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(logging_setup, "_default_log_dir", lambda: log_dir)
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    root.handlers.clear()
    try:
        log_path = logging_setup.init_logging()
        logging_setup.init_logging()
        assert log_path == log_dir / "app.log"
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert len(root.handlers) == 2
        for handler in root.handlers:
            handler.close()
    finally:
        root.handlers = original_handlers
        root.setLevel(original_level)


def test_init_logging_level_from_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(logging_setup, "_default_log_dir", lambda: tmp_path)
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    root.handlers.clear()
    try:
        monkeypatch.setenv("PLAYLIST_SYNC_LOG_LEVEL", "debug")
        logging_setup.init_logging()
        assert root.level == logging.DEBUG
        monkeypatch.setenv("PLAYLIST_SYNC_LOG_LEVEL", "notalevel")
        logging_setup.init_logging()
        assert root.level == logging.INFO
        for handler in root.handlers:
            handler.close()
    finally:
        root.handlers = original_handlers
        root.setLevel(original_level)


def test_set_console_level_adjusts_stream_only(tmp_path: Path) -> None:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    root.handlers.clear()
    try:
        stream_handler = logging.StreamHandler()
        file_handler = logging.FileHandler(tmp_path / "app.log")
        root.addHandler(stream_handler)
        root.addHandler(file_handler)
        logging_setup.set_console_level(logging.ERROR)
        assert stream_handler.level == logging.ERROR
        assert file_handler.level == logging.NOTSET
        file_handler.close()
    finally:
        root.handlers = original_handlers
