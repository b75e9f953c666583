"""Launches playlist downloads and syncs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from playlist_sync.action import (
    Action,
    DownloadFinished,
    Downloading,
    SelectFolder,
    SelectPlaylist,
)
from playlist_sync.catalog import CatalogClient, PlaylistItem
from playlist_sync.commands import download_command, sync_command
from playlist_sync.components.base import Component
from playlist_sync.process import ProcessError, ProcessRunner

if TYPE_CHECKING:
    from playlist_sync.bus import ActionBus
    from playlist_sync.config import AppConfig

logger = logging.getLogger(__name__)


def playlist_dir_name(name: str) -> str:
    """Folder name used for a playlist: its name without spaces."""
    return name.replace(" ", "")


class Catalog(Component):
    """Owns the playlist list and the root download folder.

    A playlist without a folder yet is downloaded; an existing folder is
    synced from its save file.
    """

    def __init__(
        self,
        client: CatalogClient,
        *,
        items: Optional[Sequence[PlaylistItem]] = None,
        folder: Optional[str] = None,
        runner: Optional[ProcessRunner] = None,
    ) -> None:
        super().__init__()
        self._client = client
        self.items = list(items) if items is not None else client.list_items()
        self.folder = folder
        self._runner = runner
        self._executable = "spotdl"

    @property
    def names(self) -> list[str]:
        return [item.name for item in self.items]

    def register_action_sender(self, bus: "ActionBus") -> None:
        super().register_action_sender(bus)
        if self._runner is None:
            self._runner = ProcessRunner(bus)

    def register_config(self, config: "AppConfig") -> None:
        super().register_config(config)
        self._executable = config.spotdl_command

    def update(self, action: Action) -> Optional[Action]:
        if isinstance(action, SelectFolder):
            self.folder = action.path
        elif isinstance(action, SelectPlaylist):
            self.select_playlist(action.index, action.path)
        return None

    def select_playlist(self, index: int, root: Optional[str] = None) -> None:
        root = root or self.folder
        if not root:
            self._fail("No download folder selected")
            return
        if not 0 <= index < len(self.items):
            self._fail(f"No playlist at position {index + 1}")
            return
        if self._runner is None:
            raise RuntimeError("Catalog has no process runner; register a bus first")
        item = self.items[index]
        target = Path(root).expanduser() / playlist_dir_name(item.name)
        created = False
        if target.exists():
            spec = sync_command(executable=self._executable)
            preamble = ["Syncing playlist..."]
        else:
            url = self._client.resolve_playable_url(item.id)
            try:
                target.mkdir(parents=True)
            except OSError as exc:
                logger.warning("Failed to create %s: %s", target, exc)
                self._fail(f"Error creating directory: {exc}")
                return
            created = True
            spec = download_command(url, executable=self._executable)
            preamble = [f"Directory {target} created successfully!", "Download started..."]
        logger.info("Starting %s for playlist %s", spec.args[0], item.name)
        try:
            self._runner.run(spec.command, spec.args, target, preamble=preamble)
        except ProcessError:
            if created:
                # Still empty: nothing was spawned in it.
                self._remove_empty(target)
            raise

    def _remove_empty(self, target: Path) -> None:
        try:
            target.rmdir()
        except OSError as exc:
            logger.warning("Failed to remove %s: %s", target, exc)

    def _fail(self, message: str) -> None:
        self.send(Downloading(message))
        self.send(DownloadFinished())
