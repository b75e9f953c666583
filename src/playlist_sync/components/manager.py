"""Archive manager: zips playlist folders and restores archives."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from playlist_sync.action import (
    Action,
    DownloadFinished,
    Downloading,
    EnterManager,
    Error,
    GetDirs,
    SelectActivePlaylist,
    SelectFolder,
)
from playlist_sync.commands import ARCHIVE_SUFFIX, archive_command, unarchive_command
from playlist_sync.components.base import Component
from playlist_sync.process import ProcessRunner

if TYPE_CHECKING:
    from playlist_sync.bus import ActionBus
    from playlist_sync.config import AppConfig

logger = logging.getLogger(__name__)


def scan_downloads(root: Path) -> list[str]:
    """Return the sorted folders and archives directly under ``root``.

    Hidden entries are skipped. Raises OSError if ``root`` can't be listed.
    """
    names: list[str] = []
    for entry in root.iterdir():
        if entry.name.startswith("."):
            continue
        if entry.is_dir() or (
            entry.is_file() and entry.suffix.lower() == ARCHIVE_SUFFIX
        ):
            names.append(entry.name)
    return sorted(names, key=str.lower)


class Manager(Component):
    def __init__(
        self,
        *,
        folder: Optional[str] = None,
        runner: Optional[ProcessRunner] = None,
    ) -> None:
        super().__init__()
        self.folder = folder
        self.entries: list[str] = []
        self._runner = runner
        self._zip = "zip"
        self._unzip = "unzip"

    def register_action_sender(self, bus: "ActionBus") -> None:
        super().register_action_sender(bus)
        if self._runner is None:
            self._runner = ProcessRunner(bus)

    def register_config(self, config: "AppConfig") -> None:
        super().register_config(config)
        self._zip = config.zip_command
        self._unzip = config.unzip_command

    @property
    def root(self) -> Optional[Path]:
        return Path(self.folder).expanduser() if self.folder else None

    def update(self, action: Action) -> Optional[Action]:
        if isinstance(action, SelectFolder):
            self.folder = action.path
        elif isinstance(action, EnterManager):
            return self.refresh()
        elif isinstance(action, GetDirs):
            self.entries = list(action.names)
        elif isinstance(action, SelectActivePlaylist):
            self.select_entry(action.index)
        return None

    def refresh(self) -> GetDirs:
        root = self.root
        if root is None:
            return GetDirs(())
        try:
            names = scan_downloads(root)
        except OSError as exc:
            logger.warning("Failed to scan %s: %s", root, exc)
            message = f"Error reading directory: {exc}"
            self.send(Downloading(message))
            self.send(Error(message))
            return GetDirs(())
        logger.debug("Found %d downloads in %s", len(names), root)
        return GetDirs(tuple(names))

    def select_entry(self, index: int) -> None:
        root = self.root
        if root is None or not 0 <= index < len(self.entries):
            self.send(Downloading("Nothing to archive or restore"))
            self.send(DownloadFinished())
            return
        name = self.entries[index]
        if name.lower().endswith(ARCHIVE_SUFFIX):
            spec = unarchive_command(name, executable=self._unzip)
            preamble = [f"Restoring {name}..."]
        else:
            spec = archive_command(name, executable=self._zip)
            preamble = [f"Archiving {name}..."]
        if self._runner is None:
            raise RuntimeError("Manager has no process runner; register a bus first")
        self._runner.run(spec.command, spec.args, root, preamble=preamble)
