"""UpdatePlaylist use case implementing incremental playlist re-synchronization.

Re-syncs an already exported playlist from the match cache recorded at
export time, without running the matching cascade again.

Key Features:
- Destination song-id set fetched once per run
- Classification from cached matches only (a track without a cached match is
  skipped, never re-matched)
- Only missing songs are added, in batches, with partial-failure semantics
- Cooperative cancellation at classification, batch and result boundaries
- Dry-run preview of the classification
"""

from enum import Enum

from attrs import define, field, validators

from spotidrome.application.utilities.batching import (
    DEFAULT_BATCH_SIZE,
    batch_count,
    chunked,
)
from spotidrome.application.utilities.cancellation import (
    CancellationToken,
    check_cancellation,
)
from spotidrome.application.utilities.progress import (
    ProgressCallback,
    RunPhase,
    RunProgress,
)
from spotidrome.application.utilities.results import ResultFactory, RunTally
from spotidrome.config import get_logger
from spotidrome.domain.entities import ExportError, Track, UpdatePreview, UpdateResult
from spotidrome.domain.exceptions import DestinationRequestError
from spotidrome.domain.interfaces import DestinationPlaylists
from spotidrome.domain.matching.types import MatchCache

logger = get_logger(__name__)

ALREADY_IN_PLAYLIST = "Already in playlist"
MISSING_FROM_PLAYLIST = "Previously matched but missing from playlist"
NO_MATCH_RECORD = "No previous match record"
DUPLICATE_IN_UPDATE = "Duplicate of another track in this update"


class UpdateAction(Enum):
    """What an incremental update does with one source track."""

    ADD = "add"
    SKIP = "skip"


@define(frozen=True, slots=True)
class IncrementalTrackMatch:
    """Classification of one source track against the current playlist."""

    track: Track
    action: UpdateAction
    reason: str
    destination_song_id: str | None = None


@define(frozen=True, slots=True)
class UpdateOptions:
    batch_size: int = field(default=DEFAULT_BATCH_SIZE, validator=validators.gt(0))


class IncrementalUpdateOrchestrator:
    """Apply only the deltas between cached matches and a destination playlist."""

    def __init__(self, playlists: DestinationPlaylists):
        self.playlists = playlists

    def identify_tracks_to_add(
        self,
        source_tracks: list[Track],
        cached_matches: MatchCache,
        playlist_song_ids: set[str],
        cancel_token: CancellationToken | None = None,
    ) -> list[IncrementalTrackMatch]:
        """Classify each source track as add or skip using the cache only.

        Returns:
            One classification per source track, in input order
        """
        check_cancellation(cancel_token, "incremental_update")
        scheduled: set[str] = set()
        classified: list[IncrementalTrackMatch] = []

        for track in source_tracks:
            check_cancellation(cancel_token, "incremental_update")
            cached = cached_matches.get(track.id)
            song_id = cached.destination_song_id if cached else None

            if not song_id:
                classified.append(
                    IncrementalTrackMatch(track, UpdateAction.SKIP, NO_MATCH_RECORD)
                )
            elif song_id in playlist_song_ids:
                classified.append(
                    IncrementalTrackMatch(
                        track, UpdateAction.SKIP, ALREADY_IN_PLAYLIST, song_id
                    )
                )
            elif song_id in scheduled:
                classified.append(
                    IncrementalTrackMatch(
                        track, UpdateAction.SKIP, DUPLICATE_IN_UPDATE, song_id
                    )
                )
            else:
                scheduled.add(song_id)
                classified.append(
                    IncrementalTrackMatch(
                        track, UpdateAction.ADD, MISSING_FROM_PLAYLIST, song_id
                    )
                )

        return classified

    async def preview_update(
        self,
        playlist_id: str,
        source_tracks: list[Track],
        cached_matches: MatchCache,
    ) -> UpdatePreview:
        """Classify without mutating the destination playlist."""
        present = await self.playlists.get_playlist_song_ids(playlist_id)
        classified = self.identify_tracks_to_add(source_tracks, cached_matches, present)

        to_add = sum(1 for c in classified if c.action is UpdateAction.ADD)
        needs_rematch = sum(1 for c in classified if c.reason == NO_MATCH_RECORD)
        return UpdatePreview(
            total_source_tracks=len(source_tracks),
            already_in_playlist=len(source_tracks) - to_add - needs_rematch,
            estimated_to_add=to_add,
            needs_rematch=needs_rematch,
        )

    async def update_playlist(
        self,
        playlist_id: str,
        source_tracks: list[Track],
        playlist_name: str,
        cached_matches: MatchCache,
        options: UpdateOptions | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> UpdateResult:
        """Add cached matches missing from the playlist.

        Raises:
            OperationCancelledError: If cancelled; no result is produced
            DestinationAuthError: If the destination rejects our credentials
        """
        options = options or UpdateOptions()
        tally = RunTally(total=len(source_tracks))
        progress = RunProgress(total=0, callback=on_progress)

        with logger.contextualize(operation="incremental_update", playlist_id=playlist_id):
            logger.info(
                "Starting incremental playlist update",
                playlist_name=playlist_name,
                source_tracks=len(source_tracks),
                cached_matches=len(cached_matches),
            )
            await progress.enter(RunPhase.PREPARING)
            check_cancellation(cancel_token, "incremental_update")

            try:
                present = await self.playlists.get_playlist_song_ids(playlist_id)
            except DestinationRequestError as e:
                logger.error("Could not read destination playlist", error=str(e))
                tally.errors.append(
                    ExportError(
                        track_name=playlist_name,
                        artist_name="",
                        reason=f"Failed to update playlist: {e}",
                    )
                )
                await progress.fail(str(e))
                return ResultFactory.create_update_result(
                    tally,
                    success=False,
                    playlist_id=playlist_id,
                    playlist_name=playlist_name,
                    to_add=len(source_tracks),
                )

            classified = self.identify_tracks_to_add(
                source_tracks, cached_matches, present, cancel_token
            )
            to_add = [c for c in classified if c.action is UpdateAction.ADD]
            for skipped in classified:
                if skipped.action is UpdateAction.SKIP:
                    tally.skip(skipped.track, skipped.reason)

            progress.total = len(to_add)
            await progress.enter(RunPhase.EXPORTING)

            total_batches = batch_count(len(to_add), options.batch_size)
            for index, batch in enumerate(chunked(to_add, options.batch_size), start=1):
                check_cancellation(cancel_token, "incremental_update")
                tracks = [c.track for c in batch]
                song_ids = [c.destination_song_id for c in batch]
                try:
                    if not await self.playlists.update_playlist(playlist_id, song_ids):
                        raise DestinationRequestError("Playlist update was not acknowledged")
                except DestinationRequestError as e:
                    tally.fail(
                        tracks,
                        f"Batch {index}/{total_batches} failed: {e}",
                        per_track=False,
                    )
                    logger.warning(
                        "Update batch failed",
                        batch=index,
                        total_batches=total_batches,
                        error=str(e),
                    )
                else:
                    tally.succeed(tracks)
                await progress.advance(
                    step=len(batch), message=f"Batch {index}/{total_batches}"
                )

            check_cancellation(cancel_token, "incremental_update")
            await progress.complete()
            logger.info(
                "Incremental update finished",
                added=len(tally.succeeded),
                failed=len(tally.failed),
                skipped=len(tally.skipped),
            )
            return ResultFactory.create_update_result(
                tally,
                success=True,
                playlist_id=playlist_id,
                playlist_name=playlist_name,
                to_add=len(to_add),
            )
