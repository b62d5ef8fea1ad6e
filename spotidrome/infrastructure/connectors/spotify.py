"""Spotify service connector with domain model conversion.

This module provides a read-only connector for the Spotify Web API using the
spotipy library (https://spotipy.readthedocs.io/) to handle authentication
and conversion between Spotify objects and domain models.

Key components:
- SpotifyConnector: OAuth-authenticated client implementing SourceLibrary
- convert_spotify_track: Transform Spotify track objects into Track entities

Blocking spotipy calls run in worker threads via asyncio.to_thread; every
call first passes through the connector's RateLimiter.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from attrs import define, field
import backoff
import spotipy
from spotipy.oauth2 import SpotifyOAuth

from spotidrome.config import get_logger, resilient_operation, settings
from spotidrome.domain.entities import Artist, Track
from spotidrome.infrastructure.connectors.rate_limiter import RateLimiter

# Get contextual logger with service binding
logger = get_logger(__name__).bind(service="spotify")

SPOTIFY_SCOPES = [
    "playlist-read-private",
    "playlist-read-collaborative",
    "user-library-read",
]


def _build_client() -> spotipy.Spotify:
    creds = settings.credentials
    return spotipy.Spotify(
        auth_manager=SpotifyOAuth(
            client_id=creds.spotify_client_id or None,
            client_secret=creds.spotify_client_secret or None,
            redirect_uri=creds.spotify_redirect_uri or None,
            scope=SPOTIFY_SCOPES,
            open_browser=True,
            cache_handler=spotipy.CacheFileHandler(cache_path=".spotify_cache"),
        ),
    )


def _default_limiter() -> RateLimiter:
    return RateLimiter(
        max_requests=settings.api.spotify_rate_limit_requests,
        window_seconds=settings.api.spotify_rate_limit_window,
    )


@define(slots=True)
class SpotifyConnector:
    """Thin wrapper around spotipy with domain model conversion.

    Handles the OAuth flow and provides methods to:
    - Fetch all tracks of a playlist
    - Fetch the user's saved (liked) tracks

    All methods retry on SpotifyException via the backoff decorator.
    """

    client: spotipy.Spotify = field(factory=_build_client, repr=False)
    rate_limiter: RateLimiter = field(factory=_default_limiter)
    market: str = field(factory=lambda: settings.api.spotify_market)
    page_size: int = field(factory=lambda: min(settings.api.spotify_batch_size, 50))

    async def _call(self, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        await self.rate_limiter.acquire()
        return await asyncio.to_thread(method, *args, **kwargs)

    async def _collect_pages(self, first_page: dict[str, Any] | None) -> list[dict[str, Any]]:
        """Follow ``next`` links and return every item."""
        if not first_page:
            return []
        page = first_page
        items = list(page.get("items", []))
        while page.get("next"):
            page = await self._call(self.client.next, page)
            if page is None or "items" not in page:
                logger.warning("Received invalid page during pagination")
                break
            items.extend(page["items"])
        return items

    @resilient_operation("get_spotify_playlist_tracks")
    @backoff.on_exception(
        backoff.expo,
        spotipy.SpotifyException,
        max_tries=lambda: settings.api.spotify_retry_count,
    )
    async def get_playlist_tracks(self, playlist_id: str) -> list[Track]:
        """Fetch all tracks of a Spotify playlist in playlist order.

        Local files and removed tracks (no id) are left out.
        """
        first_page = await self._call(
            self.client.playlist_items,
            playlist_id,
            limit=min(self.page_size, 100),
            market=self.market,
            additional_types=("track",),
        )
        items = await self._collect_pages(first_page)
        tracks = _convert_items(items)
        logger.info(
            "Fetched Spotify playlist tracks",
            playlist_id=playlist_id,
            items=len(items),
            tracks=len(tracks),
        )
        return tracks

    @resilient_operation("get_spotify_saved_tracks")
    @backoff.on_exception(
        backoff.expo,
        spotipy.SpotifyException,
        max_tries=lambda: settings.api.spotify_retry_count,
    )
    async def get_saved_tracks(self) -> list[Track]:
        """Fetch the user's saved tracks, newest first."""
        first_page = await self._call(
            self.client.current_user_saved_tracks,
            limit=self.page_size,
            market=self.market,
        )
        items = await self._collect_pages(first_page)
        tracks = _convert_items(items)
        logger.info("Fetched Spotify saved tracks", tracks=len(tracks))
        return tracks

    @resilient_operation("get_spotify_playlist_name")
    @backoff.on_exception(
        backoff.expo,
        spotipy.SpotifyException,
        max_tries=lambda: settings.api.spotify_retry_count,
    )
    async def get_playlist_name(self, playlist_id: str) -> str:
        playlist = await self._call(self.client.playlist, playlist_id, fields="name")
        return (playlist or {}).get("name", playlist_id)


def _convert_items(items: list[dict[str, Any]]) -> list[Track]:
    tracks = []
    for item in items:
        spotify_track = (item or {}).get("track")
        if not spotify_track or not spotify_track.get("id") or item.get("is_local"):
            continue
        tracks.append(convert_spotify_track(spotify_track))
    return tracks


def convert_spotify_track(spotify_track: dict[str, Any]) -> Track:
    """Convert Spotify track data to a Track domain entity."""
    artists = [
        Artist(name=artist["name"]) for artist in spotify_track.get("artists", [])
    ] or [Artist(name="Unknown Artist")]

    return Track(
        id=spotify_track["id"],
        title=spotify_track["name"],
        artists=artists,
        album=(spotify_track.get("album") or {}).get("name"),
        duration_ms=spotify_track.get("duration_ms"),
        isrc=(spotify_track.get("external_ids") or {}).get("isrc"),
    )
