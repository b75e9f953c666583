"""Download, sync and archive playlists from the terminal."""

__version__ = "0.1.0"
