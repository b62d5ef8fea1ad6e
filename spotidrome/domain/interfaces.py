"""Capability interfaces consumed by the matching and export flows.

Concrete REST-backed connectors implement these protocols and are injected
at construction, so use cases never depend on a particular HTTP client.

Key components:
- DestinationCatalog: song lookup by ISRC or by title and artist
- DestinationPlaylists: playlist reads and mutations
- DestinationFavorites: starring songs
- SourceLibrary: reading tracks from the source streaming service
"""

from typing import Protocol, runtime_checkable

from spotidrome.domain.entities.track import DestinationSong, Track


@runtime_checkable
class DestinationCatalog(Protocol):
    """Lookup side of the destination server."""

    async def search_by_isrc(self, isrc: str) -> DestinationSong | None:
        """Find the song carrying this ISRC.

        Args:
            isrc: International Standard Recording Code

        Returns:
            The matching song or None when the catalog does not hold it
        """
        ...

    async def search_songs(self, title: str, artist: str) -> list[DestinationSong]:
        """Search songs by title and artist.

        Args:
            title: Track title
            artist: Primary artist name

        Returns:
            Candidate songs, possibly empty
        """
        ...


@runtime_checkable
class DestinationPlaylists(Protocol):
    """Playlist membership on the destination server."""

    async def get_playlist_song_ids(self, playlist_id: str) -> set[str]:
        """Return the set of song ids currently in a playlist."""
        ...

    async def get_playlist_songs(self, playlist_id: str) -> list[DestinationSong]:
        """Return the playlist entries in playlist order."""
        ...

    async def create_playlist(self, name: str, song_ids: list[str]) -> str:
        """Create a playlist holding ``song_ids`` and return its id."""
        ...

    async def update_playlist(
        self,
        playlist_id: str,
        song_ids_to_add: list[str],
        song_indexes_to_remove: list[int] | None = None,
    ) -> bool:
        """Append songs and/or remove entries by index.

        Returns:
            True if the server acknowledged the update
        """
        ...


@runtime_checkable
class DestinationFavorites(Protocol):
    """Favorites (starred songs) on the destination server."""

    async def star(self, song_ids: list[str]) -> bool:
        """Star the given songs. Returns True on acknowledgement."""
        ...


@runtime_checkable
class SourceLibrary(Protocol):
    """Read access to the source streaming library."""

    async def get_playlist_tracks(self, playlist_id: str) -> list[Track]:
        """Return all tracks of a playlist in order."""
        ...

    async def get_saved_tracks(self) -> list[Track]:
        """Return the user's saved (liked) tracks, newest first."""
        ...
