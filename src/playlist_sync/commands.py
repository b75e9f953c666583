"""Argument templates for the external tools."""

from __future__ import annotations

from dataclasses import dataclass

SAVE_FILE = "save.spotdl"
ARCHIVE_SUFFIX = ".zip"


@dataclass(frozen=True)
class CommandSpec:
    """An executable plus its arguments."""

    command: str
    args: tuple[str, ...]

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


def download_command(url: str, *, executable: str = "spotdl") -> CommandSpec:
    """First download of a playlist; records it in the save file."""
    return CommandSpec(
        executable,
        ("sync", url, "--save-file", SAVE_FILE, "--simple-tui"),
    )


def sync_command(*, executable: str = "spotdl") -> CommandSpec:
    """Re-sync a playlist folder from its save file."""
    return CommandSpec(executable, ("sync", SAVE_FILE))


def archive_command(name: str, *, executable: str = "zip") -> CommandSpec:
    return CommandSpec(executable, ("-r", f"{name}{ARCHIVE_SUFFIX}", name))


def unarchive_command(archive: str, *, executable: str = "unzip") -> CommandSpec:
    return CommandSpec(executable, ("-o", archive))
