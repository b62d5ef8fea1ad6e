"""Unit tests for PlaylistExporter covering all four export modes.

Uses the shared ``match_set`` fixture (6 matched, 2 ambiguous, 2 unmatched)
and an AsyncMock destination.
"""

from unittest.mock import call

import pytest

from spotidrome.application.use_cases.export_playlist import (
    ALREADY_IN_PLAYLIST,
    AMBIGUOUS_SKIPPED,
    NO_MATCH,
    ExportOptions,
    PlaylistExporter,
)
from spotidrome.application.utilities.cancellation import CancellationToken
from spotidrome.application.utilities.progress import RunPhase
from spotidrome.domain.entities import ExportMode
from spotidrome.domain.exceptions import (
    DestinationAuthError,
    DestinationRequestError,
    OperationCancelledError,
)
from spotidrome.domain.matching.types import MatchStrategy, TrackMatch

MATCHED_IDS = [f"nd-m{i}" for i in range(6)]


class TestCreateMode:
    """New playlist creation."""

    async def test_skip_unmatched_exports_only_matched(self, mock_playlists, match_set):
        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set, "Road Trip"
        )

        assert result.success is True
        assert result.playlist_id == "pl-new"
        assert result.mode is ExportMode.CREATE
        assert result.statistics.total == 10
        assert result.statistics.exported == 6
        assert result.statistics.skipped == 4
        assert result.statistics.failed == 0
        mock_playlists.create_playlist.assert_awaited_once_with("Road Trip", MATCHED_IDS)
        mock_playlists.update_playlist.assert_not_awaited()

    async def test_skip_reasons(self, mock_playlists, match_set):
        result = await PlaylistExporter(mock_playlists).export_playlist(match_set, "Mix")

        reasons = sorted(skipped.reason for skipped in result.skipped_tracks)
        assert reasons == sorted([AMBIGUOUS_SKIPPED] * 2 + [NO_MATCH] * 2)

    async def test_include_ambiguous_exports_best_candidate(self, mock_playlists, match_set):
        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set, "Mix", ExportOptions(skip_unmatched=False)
        )

        assert result.statistics.exported == 8
        assert result.statistics.skipped == 2
        _, song_ids = mock_playlists.create_playlist.await_args.args
        assert song_ids == MATCHED_IDS + ["nd-a0-best", "nd-a1-best"]

    async def test_first_batch_creates_and_later_batches_append(
        self, mock_playlists, match_set
    ):
        await PlaylistExporter(mock_playlists).export_playlist(
            match_set, "Mix", ExportOptions(batch_size=4)
        )

        mock_playlists.create_playlist.assert_awaited_once_with("Mix", MATCHED_IDS[:4])
        mock_playlists.update_playlist.assert_awaited_once_with("pl-new", MATCHED_IDS[4:])

    async def test_nothing_eligible_still_creates_empty_playlist(self, mock_playlists):
        result = await PlaylistExporter(mock_playlists).export_playlist([], "Empty")

        assert result.success is True
        assert result.playlist_id == "pl-new"
        mock_playlists.create_playlist.assert_awaited_once_with("Empty", [])

    async def test_create_failure_fails_run(self, mock_playlists, match_set):
        mock_playlists.create_playlist.side_effect = DestinationRequestError("HTTP 500")
        events = []

        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set, "Mix", ExportOptions(batch_size=4), on_progress=events.append
        )

        assert result.success is False
        assert result.playlist_id is None
        assert result.statistics.failed == 6
        assert result.statistics.exported == 0
        assert events[-1].phase is RunPhase.FAILED
        mock_playlists.update_playlist.assert_not_awaited()

    async def test_result_carries_match_cache(self, mock_playlists, match_set):
        result = await PlaylistExporter(mock_playlists).export_playlist(match_set, "Mix")

        assert len(result.cached_matches) == 10
        assert result.cached_matches["sp-m3"].destination_song_id == "nd-m3"


class TestAppendAndPartialFailure:
    """Appending to an existing playlist with batch failures."""

    async def test_failed_batch_records_errors_and_continues(
        self, mock_playlists, match_set
    ):
        mock_playlists.update_playlist.side_effect = [
            True,
            DestinationRequestError("HTTP 500"),
            True,
        ]

        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set,
            "Mix",
            ExportOptions(mode=ExportMode.APPEND, existing_playlist_id="pl-1", batch_size=2),
        )

        assert result.success is True
        assert result.statistics.exported == 4
        assert result.statistics.failed == 2
        assert len(result.errors) == 2
        assert all(e.reason == "Batch 2/3 failed: HTTP 500" for e in result.errors)
        assert [t.id for t in result.failed_tracks] == ["sp-m2", "sp-m3"]

    async def test_unacknowledged_update_counts_as_failure(self, mock_playlists, match_set):
        mock_playlists.update_playlist.return_value = False

        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set, "Mix", ExportOptions(mode=ExportMode.APPEND, existing_playlist_id="pl-1")
        )

        assert result.statistics.failed == 6
        assert result.statistics.exported == 0

    async def test_missing_playlist_id_rejected(self, mock_playlists, match_set):
        with pytest.raises(ValueError, match="requires an existing playlist id"):
            await PlaylistExporter(mock_playlists).export_playlist(
                match_set, "Mix", ExportOptions(mode=ExportMode.APPEND)
            )


class TestSyncMode:
    """Sync adds only songs missing from the destination."""

    async def test_sync_against_complete_playlist_is_noop(self, mock_playlists, match_set):
        mock_playlists.get_playlist_song_ids.return_value = set(MATCHED_IDS)

        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set, "Mix", ExportOptions(mode=ExportMode.SYNC, existing_playlist_id="pl-1")
        )

        assert result.success is True
        assert result.statistics.exported == 0
        assert result.statistics.skipped == 10
        assert sum(s.reason == ALREADY_IN_PLAYLIST for s in result.skipped_tracks) == 6
        mock_playlists.update_playlist.assert_not_awaited()

    async def test_sync_adds_only_missing(self, mock_playlists, match_set):
        mock_playlists.get_playlist_song_ids.return_value = {"nd-m0", "nd-m1"}

        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set, "Mix", ExportOptions(mode=ExportMode.SYNC, existing_playlist_id="pl-1")
        )

        assert result.statistics.exported == 4
        mock_playlists.get_playlist_song_ids.assert_awaited_once_with("pl-1")
        mock_playlists.update_playlist.assert_awaited_once_with("pl-1", MATCHED_IDS[2:])

    async def test_sync_dedupes_within_run(self, mock_playlists, make_track, make_song):
        song = make_song(song_id="nd-shared")
        matches = [
            TrackMatch.matched(make_track(track_id="sp-1"), song, MatchStrategy.STRICT),
            TrackMatch.matched(make_track(track_id="sp-2"), song, MatchStrategy.STRICT),
        ]

        result = await PlaylistExporter(mock_playlists).export_playlist(
            matches, "Mix", ExportOptions(mode=ExportMode.SYNC, existing_playlist_id="pl-1")
        )

        assert result.statistics.exported == 1
        assert result.skipped_tracks[0].reason == ALREADY_IN_PLAYLIST
        mock_playlists.update_playlist.assert_awaited_once_with("pl-1", ["nd-shared"])

    async def test_read_failure_fails_run(self, mock_playlists, match_set):
        mock_playlists.get_playlist_song_ids.side_effect = DestinationRequestError("HTTP 404")

        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set, "Mix", ExportOptions(mode=ExportMode.SYNC, existing_playlist_id="pl-1")
        )

        assert result.success is False
        assert result.statistics.failed == 6
        mock_playlists.update_playlist.assert_not_awaited()


class TestOverwriteMode:
    """Overwrite clears the playlist before adding."""

    async def test_clears_then_adds(self, mock_playlists, match_set, make_song):
        mock_playlists.get_playlist_songs.return_value = [
            make_song(song_id=f"old-{i}") for i in range(3)
        ]

        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set,
            "Mix",
            ExportOptions(mode=ExportMode.OVERWRITE, existing_playlist_id="pl-1"),
        )

        assert result.statistics.exported == 6
        assert mock_playlists.update_playlist.await_args_list == [
            call("pl-1", [], [2, 1, 0]),
            call("pl-1", MATCHED_IDS),
        ]

    async def test_large_playlist_cleared_in_batches_from_the_end(
        self, mock_playlists, match_set, make_song
    ):
        mock_playlists.get_playlist_songs.return_value = [
            make_song(song_id=f"old-{i}") for i in range(120)
        ]

        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set,
            "Mix",
            ExportOptions(mode=ExportMode.OVERWRITE, existing_playlist_id="pl-1"),
        )

        removals = [c.args[2] for c in mock_playlists.update_playlist.await_args_list[:-1]]
        assert [len(batch) for batch in removals] == [50, 50, 20]
        assert removals[0][:2] == [119, 118]
        assert removals[-1][-1] == 0
        assert sorted(i for batch in removals for i in batch) == list(range(120))
        assert result.success is True
        assert result.statistics.exported == 6

    async def test_failed_clear_batch_fails_run(self, mock_playlists, match_set, make_song):
        mock_playlists.get_playlist_songs.return_value = [
            make_song(song_id=f"old-{i}") for i in range(60)
        ]
        mock_playlists.update_playlist.side_effect = [True, DestinationRequestError("HTTP 414")]

        result = await PlaylistExporter(mock_playlists).export_playlist(
            match_set,
            "Mix",
            ExportOptions(mode=ExportMode.OVERWRITE, existing_playlist_id="pl-1"),
        )

        assert result.success is False
        assert result.statistics.failed == 6
        assert mock_playlists.update_playlist.await_count == 2

    async def test_empty_playlist_needs_no_clear(self, mock_playlists, match_set):
        await PlaylistExporter(mock_playlists).export_playlist(
            match_set,
            "Mix",
            ExportOptions(mode=ExportMode.OVERWRITE, existing_playlist_id="pl-1"),
        )

        mock_playlists.update_playlist.assert_awaited_once_with("pl-1", MATCHED_IDS)


class TestFatalConditions:
    """Authorization failures and cancellation propagate."""

    async def test_auth_error_propagates(self, mock_playlists, match_set):
        mock_playlists.create_playlist.side_effect = DestinationAuthError("denied", code=50)

        with pytest.raises(DestinationAuthError):
            await PlaylistExporter(mock_playlists).export_playlist(match_set, "Mix")

    async def test_cancelled_token_stops_before_first_batch(self, mock_playlists, match_set):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            await PlaylistExporter(mock_playlists).export_playlist(
                match_set, "Mix", cancel_token=token
            )
        mock_playlists.create_playlist.assert_not_awaited()

    async def test_progress_phases(self, mock_playlists, match_set):
        events = []

        await PlaylistExporter(mock_playlists).export_playlist(
            match_set, "Mix", ExportOptions(batch_size=4), on_progress=events.append
        )

        assert [e.phase for e in events] == [
            RunPhase.PREPARING,
            RunPhase.EXPORTING,
            RunPhase.EXPORTING,
            RunPhase.EXPORTING,
            RunPhase.COMPLETED,
        ]
        assert events[-1].current == events[-1].total == 6
