"""Playlist catalog backends."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, cast

logger = logging.getLogger(__name__)

spotipy: Any | None = None
_SPOTIPY_IMPORT_ERROR: Optional[Exception] = None

SCOPES = "playlist-read-private playlist-read-collaborative"
PLAYLIST_URL = "https://open.spotify.com/playlist/{id}"
PAGE_SIZE = 50


class CatalogError(RuntimeError):
    """The catalog could not be reached or parsed."""


@dataclass(frozen=True)
class PlaylistItem:
    id: str
    name: str
    url: Optional[str] = None


class CatalogClient(Protocol):
    def list_items(self) -> list[PlaylistItem]: ...

    def resolve_playable_url(self, item_id: str) -> str: ...


def _load_spotipy() -> None:
    global spotipy
    global _SPOTIPY_IMPORT_ERROR
    if spotipy is not None or _SPOTIPY_IMPORT_ERROR is not None:
        return
    try:
        import spotipy as spotipy_module
        from spotipy import oauth2  # noqa: F401
    except Exception as exc:  # pragma: no cover - depends on environment
        spotipy = None
        _SPOTIPY_IMPORT_ERROR = exc
    else:
        spotipy = cast(Any, spotipy_module)
        _SPOTIPY_IMPORT_ERROR = None


class SpotifyCatalog:
    """Thin wrapper around spotipy for the current user's playlists.

    Credentials come from the ``SPOTIPY_CLIENT_ID``, ``SPOTIPY_CLIENT_SECRET``
    and ``SPOTIPY_REDIRECT_URI`` environment variables.
    """

    def __init__(self, client: Any | None = None) -> None:
        if client is None:
            _load_spotipy()
            if spotipy is None:
                raise CatalogError(
                    "Spotify backend is unavailable. Install the spotipy package."
                ) from _SPOTIPY_IMPORT_ERROR
            spotipy_module = cast(Any, spotipy)
            try:
                auth = spotipy_module.oauth2.SpotifyOAuth(scope=SCOPES)
                client = spotipy_module.Spotify(auth_manager=auth)
            except Exception as exc:
                raise CatalogError(f"Spotify authentication failed: {exc}") from exc
        self._client = client

    def list_items(self) -> list[PlaylistItem]:
        items: list[PlaylistItem] = []
        try:
            page = self._client.current_user_playlists(limit=PAGE_SIZE)
            while page:
                for raw in page.get("items") or []:
                    item = _item_from_api(raw)
                    if item is not None:
                        items.append(item)
                page = self._client.next(page) if page.get("next") else None
        except Exception as exc:
            logger.exception("Failed to fetch playlists")
            raise CatalogError(f"Failed to fetch playlists: {exc}") from exc
        logger.info("Fetched %d playlists", len(items))
        return items

    def resolve_playable_url(self, item_id: str) -> str:
        return PLAYLIST_URL.format(id=item_id)


def _item_from_api(raw: Any) -> Optional[PlaylistItem]:
    if not isinstance(raw, dict) or not raw.get("id"):
        return None
    url = raw.get("url")
    urls = raw.get("external_urls")
    if not url and isinstance(urls, dict):
        url = urls.get("spotify")
    return PlaylistItem(
        id=str(raw["id"]),
        name=str(raw.get("name") or raw["id"]),
        url=str(url) if url else None,
    )


class StaticCatalog:
    """Catalog backed by a fixed list, e.g. loaded from a JSON file."""

    def __init__(self, items: Iterable[PlaylistItem]) -> None:
        self._items = list(items)

    @classmethod
    def from_file(cls, path: Path) -> "StaticCatalog":
        """Load ``[{"id": ..., "name": ..., "url": ...}, ...]`` from ``path``."""
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CatalogError(f"Failed to read catalog {path}: {exc}") from exc
        if not isinstance(raw, list):
            raise CatalogError(f"Catalog {path} must contain a list of playlists")
        return cls(item for item in map(_item_from_api, raw) if item is not None)

    def list_items(self) -> list[PlaylistItem]:
        return list(self._items)

    def resolve_playable_url(self, item_id: str) -> str:
        for item in self._items:
            if item.id == item_id and item.url:
                return item.url
        return PLAYLIST_URL.format(id=item_id)
