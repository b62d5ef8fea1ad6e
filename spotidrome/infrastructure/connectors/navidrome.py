"""Navidrome service connector speaking the Subsonic/OpenSubsonic REST API.

This module provides a connector for a Navidrome server using httpx to
handle token authentication, rate limiting, retries and conversion between
Subsonic responses and domain models.

Key components:
- NavidromeConnector: implements DestinationCatalog, DestinationPlaylists and
  DestinationFavorites against ``/rest/*`` endpoints
- NavidromePlaylist: lightweight playlist summary
- Subsonic error translation to the domain exception hierarchy

Authentication uses the Subsonic token scheme: every request carries the
username, a fresh salt and ``md5(password + salt)``; the password itself is
never sent.
"""

from collections.abc import Iterable
import hashlib
import secrets
from typing import Any

from attrs import define
import backoff
import httpx

from spotidrome.config import get_logger, resilient_operation, settings
from spotidrome.domain.entities.track import DestinationSong
from spotidrome.domain.exceptions import (
    DestinationAuthError,
    DestinationError,
    DestinationRequestError,
)
from spotidrome.infrastructure.connectors.rate_limiter import RateLimiter

# Get contextual logger with service binding
logger = get_logger(__name__).bind(service="navidrome")

SUBSONIC_ERRORS = {
    0: "A generic error occurred",
    10: "Required parameter is missing",
    20: "Incompatible Subsonic protocol version",
    30: "Incompatible authentication mechanism",
    40: "Invalid username or password",
    41: "Token authentication not supported",
    50: "User is not authorized for the requested operation",
    60: "The requested data was not found",
}
AUTH_ERROR_CODES = frozenset({40, 41, 50})
AUTH_HTTP_STATUSES = frozenset({401, 403})
# Failures where the server cannot have seen the request
UNSENT_REQUEST_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


@define(frozen=True, slots=True)
class NavidromePlaylist:
    """Playlist summary as returned by getPlaylists."""

    id: str
    name: str
    song_count: int = 0
    duration: int = 0
    comment: str | None = None
    created: str | None = None

    @classmethod
    def from_subsonic(cls, item: dict[str, Any]) -> "NavidromePlaylist":
        return cls(
            id=str(item["id"]),
            name=item.get("name", ""),
            song_count=int(item.get("songCount", 0)),
            duration=int(item.get("duration", 0)),
            comment=item.get("comment"),
            created=item.get("created"),
        )


def _as_list(value: Any) -> list[Any]:
    """Subsonic JSON collapses single-element arrays in some servers."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class NavidromeConnector:
    """Async Subsonic client for a Navidrome server.

    The connector owns one httpx.AsyncClient and one RateLimiter for the
    lifetime of a run. Use it as an async context manager or call
    ``aclose()`` when done.
    """

    def __init__(
        self,
        base_url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        *,
        rate_limiter: RateLimiter | None = None,
        client: httpx.AsyncClient | None = None,
        search_limit: int | None = None,
    ):
        self.base_url = (base_url or settings.credentials.navidrome_url).rstrip("/")
        self.username = username if username is not None else settings.credentials.navidrome_username
        self._password = password if password is not None else settings.credentials.navidrome_password
        self.search_limit = search_limit or settings.matching.search_limit
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=settings.api.navidrome_rate_limit_requests,
            window_seconds=settings.api.navidrome_rate_limit_window,
        )
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(settings.api.navidrome_timeout),
        )
        logger.debug("Initialized Navidrome connector", base_url=self.base_url)

    async def __aenter__(self) -> "NavidromeConnector":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _auth_params(self) -> list[tuple[str, str]]:
        salt = secrets.token_hex(8)
        token = hashlib.md5((self._password + salt).encode("utf-8")).hexdigest()  # noqa: S324
        return [
            ("u", self.username),
            ("t", token),
            ("s", salt),
            ("v", settings.api.navidrome_api_version),
            ("c", settings.api.navidrome_client_name),
            ("f", "json"),
        ]

    async def _get(self, endpoint: str, params: list[tuple[str, str]]) -> httpx.Response:
        await self.rate_limiter.acquire()
        return await self._client.get(
            f"{self.base_url}/rest/{endpoint}", params=self._auth_params() + params
        )

    @backoff.on_exception(
        backoff.expo,
        httpx.TransportError,
        max_tries=lambda: settings.api.navidrome_retry_count,
    )
    async def _send(self, endpoint: str, params: list[tuple[str, str]]) -> httpx.Response:
        return await self._get(endpoint, params)

    @backoff.on_exception(
        backoff.expo,
        UNSENT_REQUEST_ERRORS,
        max_tries=lambda: settings.api.navidrome_retry_count,
    )
    async def _send_mutation(
        self, endpoint: str, params: list[tuple[str, str]]
    ) -> httpx.Response:
        return await self._get(endpoint, params)

    async def _request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        *,
        idempotent: bool = True,
    ) -> dict[str, Any]:
        """Call a Subsonic endpoint and return the unwrapped response body.

        List values are sent as repeated query parameters. Non-idempotent
        calls are only retried when the request never reached the server.

        Raises:
            DestinationAuthError: Rejected credentials or permissions
            DestinationRequestError: Any other failure
        """
        query: list[tuple[str, str]] = []
        for key, value in (params or {}).items():
            if value is None:
                continue
            if isinstance(value, (list, tuple, set)):
                query.extend((key, str(v)) for v in value)
            else:
                query.append((key, str(value)))

        try:
            send = self._send if idempotent else self._send_mutation
            response = await send(endpoint, query)
        except httpx.TransportError as e:
            raise DestinationRequestError(
                f"Navidrome request '{endpoint}' failed: {e!s}"
            ) from e

        if response.status_code in AUTH_HTTP_STATUSES:
            raise DestinationAuthError(
                f"Navidrome rejected credentials (HTTP {response.status_code})",
                code=response.status_code,
            )
        if response.is_error:
            raise DestinationRequestError(
                f"HTTP error: {response.status_code} {response.reason_phrase}",
                code=response.status_code,
            )

        try:
            body = response.json()["subsonic-response"]
        except (ValueError, KeyError) as e:
            raise DestinationRequestError(
                f"Malformed Subsonic response from '{endpoint}'"
            ) from e

        if body.get("status") != "ok":
            error = body.get("error") or {}
            code = int(error.get("code", 0))
            message = SUBSONIC_ERRORS.get(code) or (
                f"Subsonic error {code}: {error.get('message', 'unknown')}"
            )
            if code in AUTH_ERROR_CODES:
                raise DestinationAuthError(message, code=code)
            raise DestinationRequestError(message, code=code)

        return body

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    @resilient_operation("navidrome_ping")
    async def ping(self) -> str | None:
        """Verify server reachability and credentials.

        Returns:
            The server version reported by Navidrome, if any

        Raises:
            DestinationAuthError: On any handshake failure
        """
        try:
            body = await self._request("ping")
        except DestinationAuthError:
            raise
        except DestinationError as e:
            raise DestinationAuthError(
                f"Cannot connect to Navidrome at {self.base_url}: {e!s}"
            ) from e
        return body.get("serverVersion") or body.get("version")

    # ------------------------------------------------------------------
    # DestinationCatalog
    # ------------------------------------------------------------------

    async def _search3(self, query: str) -> list[DestinationSong]:
        body = await self._request(
            "search3",
            {
                "query": query,
                "songCount": self.search_limit,
                "artistCount": 0,
                "albumCount": 0,
            },
        )
        songs = _as_list(body.get("searchResult3", {}).get("song"))
        return [DestinationSong.from_subsonic(song) for song in songs]

    @resilient_operation("navidrome_search_songs")
    async def search_songs(self, title: str, artist: str) -> list[DestinationSong]:
        query = f"{title} {artist}".strip()
        songs = await self._search3(query)
        logger.debug("search3 returned songs", query=query, count=len(songs))
        return songs

    @resilient_operation("navidrome_search_by_isrc")
    async def search_by_isrc(self, isrc: str) -> DestinationSong | None:
        """Find a song whose OpenSubsonic ``isrc`` list contains ``isrc``."""
        wanted = isrc.strip().upper()
        for song in await self._search3(wanted):
            if wanted in (code.upper() for code in song.isrcs):
                return song
        return None

    # ------------------------------------------------------------------
    # DestinationPlaylists
    # ------------------------------------------------------------------

    @resilient_operation("navidrome_get_playlists")
    async def get_playlists(self) -> list[NavidromePlaylist]:
        body = await self._request("getPlaylists")
        items = _as_list(body.get("playlists", {}).get("playlist"))
        return [NavidromePlaylist.from_subsonic(item) for item in items]

    @resilient_operation("navidrome_get_playlist")
    async def get_playlist_songs(self, playlist_id: str) -> list[DestinationSong]:
        body = await self._request("getPlaylist", {"id": playlist_id})
        entries = _as_list(body.get("playlist", {}).get("entry"))
        return [DestinationSong.from_subsonic(entry) for entry in entries]

    async def get_playlist_song_ids(self, playlist_id: str) -> set[str]:
        return {song.id for song in await self.get_playlist_songs(playlist_id)}

    @resilient_operation("navidrome_create_playlist")
    async def create_playlist(self, name: str, song_ids: list[str]) -> str:
        body = await self._request(
            "createPlaylist",
            {"name": name, "songId": list(song_ids)},
            idempotent=False,
        )
        playlist = body.get("playlist") or {}
        if "id" in playlist:
            playlist_id = str(playlist["id"])
        else:
            # Servers older than Subsonic 1.14 do not echo the playlist back
            playlist_id = await self._find_playlist_id(name)
        logger.info(
            "Created Navidrome playlist",
            playlist_id=playlist_id,
            name=name,
            song_count=len(song_ids),
        )
        return playlist_id

    async def _find_playlist_id(self, name: str) -> str:
        """Newest playlist named ``name``; later listing position breaks ties."""
        candidates = [p for p in await self.get_playlists() if p.name == name]
        if not candidates:
            raise DestinationRequestError(f"Created playlist '{name}' not found on server")
        # Subsonic timestamps are ISO-8601 UTC and sort lexically
        newest = max(reversed(candidates), key=lambda p: p.created or "")
        return newest.id

    @resilient_operation("navidrome_update_playlist")
    async def update_playlist(
        self,
        playlist_id: str,
        song_ids_to_add: list[str],
        song_indexes_to_remove: list[int] | None = None,
    ) -> bool:
        await self._request(
            "updatePlaylist",
            {
                "playlistId": playlist_id,
                "songIdToAdd": list(song_ids_to_add),
                "songIndexToRemove": list(song_indexes_to_remove or []),
            },
            idempotent=False,
        )
        return True

    # ------------------------------------------------------------------
    # DestinationFavorites
    # ------------------------------------------------------------------

    @resilient_operation("navidrome_star")
    async def star(self, song_ids: Iterable[str]) -> bool:
        await self._request("star", {"id": list(song_ids)}, idempotent=False)
        return True
