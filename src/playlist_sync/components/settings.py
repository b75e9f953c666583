"""Remembers the committed folder across runs."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from playlist_sync.action import Action, Error, Save, SelectFolder
from playlist_sync.components.base import Component
from playlist_sync.config import AppConfig, save_config

logger = logging.getLogger(__name__)


class Settings(Component):
    def __init__(self, saver: Callable[[AppConfig], None] = save_config) -> None:
        super().__init__()
        self._saver = saver
        self.folder: Optional[str] = None

    def register_config(self, config: AppConfig) -> None:
        super().register_config(config)
        self.folder = config.download_dir

    def update(self, action: Action) -> Optional[Action]:
        if isinstance(action, SelectFolder):
            self.folder = action.path
            return self.save()
        if isinstance(action, Save):
            return self.save()
        return None

    def save(self) -> Optional[Action]:
        base = self.config or AppConfig()
        updated = base.with_folder(self.folder)
        try:
            self._saver(updated)
        except OSError as exc:
            logger.exception("Failed to save config")
            return Error(f"Failed to save settings: {exc}")
        self.config = updated
        logger.info("Saved download folder %s", self.folder)
        return None
