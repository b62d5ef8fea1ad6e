"""Unit tests for IncrementalUpdateOrchestrator.

Covers classification from cached matches, batched additions with partial
failure, read failures, cancellation and the dry-run preview.
"""

from unittest.mock import call

import pytest

from spotidrome.application.use_cases.update_playlist import (
    ALREADY_IN_PLAYLIST,
    DUPLICATE_IN_UPDATE,
    MISSING_FROM_PLAYLIST,
    NO_MATCH_RECORD,
    IncrementalUpdateOrchestrator,
    UpdateAction,
    UpdateOptions,
)
from spotidrome.application.utilities.cancellation import CancellationToken
from spotidrome.domain.exceptions import (
    DestinationAuthError,
    DestinationRequestError,
    OperationCancelledError,
)
from spotidrome.domain.matching.types import CachedTrackMatch, MatchStatus, MatchStrategy


def cached(track_id: str, song_id: str | None) -> CachedTrackMatch:
    if song_id is None:
        return CachedTrackMatch(
            source_track_id=track_id,
            status=MatchStatus.UNMATCHED,
            match_strategy=MatchStrategy.NONE,
            match_score=0.0,
        )
    return CachedTrackMatch(
        source_track_id=track_id,
        status=MatchStatus.MATCHED,
        match_strategy=MatchStrategy.STRICT,
        match_score=1.0,
        destination_song_id=song_id,
    )


@pytest.fixture
def source_tracks(make_track):
    return [make_track(track_id=f"sp-{i}", title=f"Song {i}") for i in range(1, 6)]


@pytest.fixture
def cache():
    """sp-1..sp-4 previously matched to nd-1..nd-4; sp-5 has no record."""
    return {f"sp-{i}": cached(f"sp-{i}", f"nd-{i}") for i in range(1, 5)}


class TestIdentifyTracksToAdd:
    """Classification uses the cache only."""

    def test_classifies_each_track(self, mock_playlists, source_tracks, cache):
        classified = IncrementalUpdateOrchestrator(mock_playlists).identify_tracks_to_add(
            source_tracks, cache, {"nd-1", "nd-2"}
        )

        assert [c.action for c in classified] == [
            UpdateAction.SKIP,
            UpdateAction.SKIP,
            UpdateAction.ADD,
            UpdateAction.ADD,
            UpdateAction.SKIP,
        ]
        assert [c.reason for c in classified] == [
            ALREADY_IN_PLAYLIST,
            ALREADY_IN_PLAYLIST,
            MISSING_FROM_PLAYLIST,
            MISSING_FROM_PLAYLIST,
            NO_MATCH_RECORD,
        ]
        assert classified[2].destination_song_id == "nd-3"

    def test_unmatched_record_is_not_added(self, mock_playlists, make_track):
        track = make_track(track_id="sp-x")

        classified = IncrementalUpdateOrchestrator(mock_playlists).identify_tracks_to_add(
            [track], {"sp-x": cached("sp-x", None)}, set()
        )

        assert classified[0].reason == NO_MATCH_RECORD

    def test_duplicate_song_scheduled_once(self, mock_playlists, make_track):
        tracks = [make_track(track_id="sp-a"), make_track(track_id="sp-b")]
        cache = {"sp-a": cached("sp-a", "nd-9"), "sp-b": cached("sp-b", "nd-9")}

        classified = IncrementalUpdateOrchestrator(mock_playlists).identify_tracks_to_add(
            tracks, cache, set()
        )

        assert [c.action for c in classified] == [UpdateAction.ADD, UpdateAction.SKIP]
        assert classified[1].reason == DUPLICATE_IN_UPDATE

    def test_cancelled_token_raises(self, mock_playlists, source_tracks, cache):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            IncrementalUpdateOrchestrator(mock_playlists).identify_tracks_to_add(
                source_tracks, cache, set(), token
            )


class TestUpdatePlaylist:
    """End-to-end incremental update against a mocked destination."""

    async def test_complete_playlist_adds_nothing(self, mock_playlists, source_tracks, cache):
        mock_playlists.get_playlist_song_ids.return_value = {f"nd-{i}" for i in range(1, 5)}

        result = await IncrementalUpdateOrchestrator(mock_playlists).update_playlist(
            "pl-1", source_tracks, "Mix", cache
        )

        assert result.success is True
        assert result.statistics.added_to_playlist == 0
        assert result.statistics.already_in_playlist == 5
        assert result.statistics.failed == 0
        mock_playlists.update_playlist.assert_not_awaited()

    async def test_adds_missing_tracks(self, mock_playlists, source_tracks, cache):
        mock_playlists.get_playlist_song_ids.return_value = {"nd-1", "nd-2"}

        result = await IncrementalUpdateOrchestrator(mock_playlists).update_playlist(
            "pl-1", source_tracks, "Mix", cache
        )

        assert result.statistics.total_source_tracks == 5
        assert result.statistics.added_to_playlist == 2
        assert result.statistics.already_in_playlist == 3
        assert [t.id for t in result.tracks_added] == ["sp-3", "sp-4"]
        assert len(result.tracks_skipped) == 3
        mock_playlists.update_playlist.assert_awaited_once_with("pl-1", ["nd-3", "nd-4"])

    async def test_only_playlist_port_is_used(self, mock_playlists, source_tracks, cache):
        await IncrementalUpdateOrchestrator(mock_playlists).update_playlist(
            "pl-1", source_tracks, "Mix", cache
        )

        used = {name for name, _, _ in mock_playlists.method_calls}
        assert used == {"get_playlist_song_ids", "update_playlist"}

    async def test_batches_additions(self, mock_playlists, make_track):
        tracks = [make_track(track_id=f"sp-{i}") for i in range(120)]
        cache = {f"sp-{i}": cached(f"sp-{i}", f"nd-{i}") for i in range(120)}

        result = await IncrementalUpdateOrchestrator(mock_playlists).update_playlist(
            "pl-1", tracks, "Mix", cache, UpdateOptions(batch_size=50)
        )

        sizes = [len(c.args[1]) for c in mock_playlists.update_playlist.await_args_list]
        assert sizes == [50, 50, 20]
        assert result.statistics.added_to_playlist == 120

    async def test_failed_batch_records_single_error(self, mock_playlists, make_track):
        tracks = [make_track(track_id=f"sp-{i}") for i in range(120)]
        cache = {f"sp-{i}": cached(f"sp-{i}", f"nd-{i}") for i in range(120)}
        mock_playlists.update_playlist.side_effect = [
            True,
            DestinationRequestError("HTTP 500"),
            True,
        ]

        result = await IncrementalUpdateOrchestrator(mock_playlists).update_playlist(
            "pl-1", tracks, "Mix", cache, UpdateOptions(batch_size=50)
        )

        assert result.success is True
        assert result.statistics.added_to_playlist == 70
        assert result.statistics.failed == 50
        assert result.statistics.already_in_playlist == 0
        assert len(result.errors) == 1
        assert result.errors[0].reason == "Batch 2/3 failed: HTTP 500"

    async def test_read_failure_returns_failed_result(
        self, mock_playlists, source_tracks, cache
    ):
        mock_playlists.get_playlist_song_ids.side_effect = DestinationRequestError("HTTP 404")

        result = await IncrementalUpdateOrchestrator(mock_playlists).update_playlist(
            "pl-1", source_tracks, "Mix", cache
        )

        assert result.success is False
        assert result.statistics.failed == 5
        assert result.statistics.added_to_playlist == 0
        assert result.errors[0].reason.startswith("Failed to update playlist")
        mock_playlists.update_playlist.assert_not_awaited()

    async def test_auth_error_propagates(self, mock_playlists, source_tracks, cache):
        mock_playlists.get_playlist_song_ids.side_effect = DestinationAuthError("denied")

        with pytest.raises(DestinationAuthError):
            await IncrementalUpdateOrchestrator(mock_playlists).update_playlist(
                "pl-1", source_tracks, "Mix", cache
            )

    async def test_pre_cancelled_token_skips_playlist_read(
        self, mock_playlists, source_tracks, cache
    ):
        token = CancellationToken()
        token.cancel("user abort")

        with pytest.raises(OperationCancelledError):
            await IncrementalUpdateOrchestrator(mock_playlists).update_playlist(
                "pl-1", source_tracks, "Mix", cache, cancel_token=token
            )
        mock_playlists.get_playlist_song_ids.assert_not_awaited()
        mock_playlists.update_playlist.assert_not_awaited()

    async def test_cancel_between_batches(self, mock_playlists, make_track):
        tracks = [make_track(track_id=f"sp-{i}") for i in range(4)]
        cache = {f"sp-{i}": cached(f"sp-{i}", f"nd-{i}") for i in range(4)}
        token = CancellationToken()

        def cancel_after_first_batch(event):
            if event.current > 0:
                token.cancel()

        with pytest.raises(OperationCancelledError):
            await IncrementalUpdateOrchestrator(mock_playlists).update_playlist(
                "pl-1",
                tracks,
                "Mix",
                cache,
                UpdateOptions(batch_size=2),
                on_progress=cancel_after_first_batch,
                cancel_token=token,
            )
        assert mock_playlists.update_playlist.await_args_list == [
            call("pl-1", ["nd-0", "nd-1"])
        ]


class TestPreviewUpdate:
    """Dry-run classification."""

    async def test_preview_counts(self, mock_playlists, source_tracks, cache):
        mock_playlists.get_playlist_song_ids.return_value = {"nd-1"}

        preview = await IncrementalUpdateOrchestrator(mock_playlists).preview_update(
            "pl-1", source_tracks, cache
        )

        assert preview.total_source_tracks == 5
        assert preview.estimated_to_add == 3
        assert preview.needs_rematch == 1
        assert preview.already_in_playlist == 1
        mock_playlists.update_playlist.assert_not_awaited()
