"""Shared fixtures - track and song factories plus mocked destination ports.

Factories are function-scoped so each test builds exactly the objects it needs.
"""

from unittest.mock import AsyncMock

import pytest

from spotidrome.domain.entities import Artist, DestinationSong, Track
from spotidrome.domain.matching.types import MatchStrategy, TrackMatch


@pytest.fixture
def make_track():
    """Factory for source tracks with sensible defaults."""

    def _make(
        track_id: str = "sp-1",
        title: str = "Paranoid Android",
        artist: str | list[str] = "Radiohead",
        duration_ms: int | None = 386000,
        isrc: str | None = None,
        album: str | None = "OK Computer",
    ) -> Track:
        names = [artist] if isinstance(artist, str) else artist
        return Track(
            id=track_id,
            title=title,
            artists=[Artist(name=name) for name in names],
            album=album,
            duration_ms=duration_ms,
            isrc=isrc,
        )

    return _make


@pytest.fixture
def make_song():
    """Factory for destination songs with sensible defaults."""

    def _make(
        song_id: str = "nd-1",
        title: str = "Paranoid Android",
        artist: str = "Radiohead",
        duration_ms: int | None = 386000,
        isrcs: list[str] | None = None,
    ) -> DestinationSong:
        return DestinationSong(
            id=song_id,
            title=title,
            artist=artist,
            duration_ms=duration_ms,
            isrcs=isrcs or [],
        )

    return _make


@pytest.fixture
def match_set(make_track, make_song):
    """Ten matches: six matched, two ambiguous, two unmatched."""
    matches = []
    for i in range(6):
        matches.append(
            TrackMatch.matched(
                make_track(track_id=f"sp-m{i}", title=f"Matched {i}"),
                make_song(song_id=f"nd-m{i}", title=f"Matched {i}"),
                MatchStrategy.STRICT,
            )
        )
    for i in range(2):
        matches.append(
            TrackMatch.ambiguous(
                make_track(track_id=f"sp-a{i}", title=f"Ambiguous {i}"),
                [
                    make_song(song_id=f"nd-a{i}-best", title=f"Ambiguous {i}"),
                    make_song(song_id=f"nd-a{i}-alt", title=f"Ambiguous {i}"),
                ],
                0.9,
            )
        )
    for i in range(2):
        matches.append(
            TrackMatch.unmatched(make_track(track_id=f"sp-u{i}", title=f"Missing {i}"))
        )
    return matches


@pytest.fixture
def mock_playlists():
    """AsyncMock implementing DestinationPlaylists with a successful default."""
    playlists = AsyncMock()
    playlists.get_playlist_song_ids.return_value = set()
    playlists.get_playlist_songs.return_value = []
    playlists.create_playlist.return_value = "pl-new"
    playlists.update_playlist.return_value = True
    return playlists


@pytest.fixture
def mock_catalog():
    """AsyncMock implementing DestinationCatalog with empty results."""
    catalog = AsyncMock()
    catalog.search_by_isrc.return_value = None
    catalog.search_songs.return_value = []
    return catalog
