"""ExportPlaylist use case: push matched tracks into a destination playlist.

Four modes decide what happens to the destination playlist:

- create: build a new playlist; the first batch creates it, later batches append
- append: add eligible songs to an existing playlist (duplicates possible)
- sync: add only songs not already in the playlist (id set fetched once)
- overwrite: clear the existing playlist, then add eligible songs

Mutations go out in batches. A failed batch records an error per track and
the loop carries on; ``success=False`` is reserved for runs that could not
proceed at all.
"""

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
from spotidrome.domain.entities import ExportMode, ExportResult, Track
from spotidrome.domain.exceptions import DestinationRequestError
from spotidrome.domain.interfaces import DestinationPlaylists
from spotidrome.domain.matching.types import (
    MatchStatus,
    TrackMatch,
    build_match_cache,
)

logger = get_logger(__name__)

ALREADY_IN_PLAYLIST = "Already in playlist"
NO_MATCH = "No match found"
AMBIGUOUS_SKIPPED = "Ambiguous match skipped"

# (source track, destination song id) pairs queued for export
PendingSongs = list[tuple[Track, str]]


@define(frozen=True, slots=True)
class ExportOptions:
    """Options for a single playlist export."""

    mode: ExportMode = ExportMode.CREATE
    existing_playlist_id: str | None = None
    skip_unmatched: bool = True
    batch_size: int = field(default=DEFAULT_BATCH_SIZE, validator=validators.gt(0))


def select_exportable(
    matches: list[TrackMatch], skip_unmatched: bool, tally: RunTally
) -> PendingSongs:
    """Split matches into exportable songs and skipped tracks.

    Ambiguous matches export their top-ranked candidate unless
    ``skip_unmatched`` is set. Unmatched tracks are never exported.
    """
    pending: PendingSongs = []
    for match in matches:
        if match.status is MatchStatus.MATCHED:
            pending.append((match.source_track, match.destination_song.id))
        elif match.status is MatchStatus.AMBIGUOUS and not skip_unmatched:
            pending.append((match.source_track, match.best_song.id))
        elif match.status is MatchStatus.AMBIGUOUS:
            tally.skip(match.source_track, AMBIGUOUS_SKIPPED)
        else:
            tally.skip(match.source_track, NO_MATCH)
    return pending


class PlaylistExporter:
    """Export a matched track list to a destination playlist."""

    def __init__(self, playlists: DestinationPlaylists):
        self.playlists = playlists

    async def export_playlist(
        self,
        matches: list[TrackMatch],
        playlist_name: str,
        options: ExportOptions | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ExportResult:
        """Run one export.

        Raises:
            ValueError: If a non-create mode has no existing playlist id
            OperationCancelledError: If cancelled between batches
            DestinationAuthError: If the destination rejects our credentials
        """
        options = options or ExportOptions()
        if options.mode is not ExportMode.CREATE and not options.existing_playlist_id:
            raise ValueError(
                f"Export mode '{options.mode.value}' requires an existing playlist id"
            )

        tally = RunTally(total=len(matches))
        progress = RunProgress(total=0, callback=on_progress)
        playlist_id = options.existing_playlist_id

        with logger.contextualize(operation="export_playlist", mode=options.mode.value):
            logger.info(
                "Starting playlist export",
                playlist_name=playlist_name,
                track_count=len(matches),
                skip_unmatched=options.skip_unmatched,
            )
            await progress.enter(RunPhase.PREPARING)

            pending = select_exportable(matches, options.skip_unmatched, tally)

            try:
                if options.mode is ExportMode.SYNC:
                    pending = await self._drop_present(playlist_id, pending, tally)
                elif options.mode is ExportMode.OVERWRITE:
                    await self._clear_playlist(playlist_id, options.batch_size)
            except DestinationRequestError as e:
                logger.error(
                    "Could not prepare destination playlist",
                    playlist_id=playlist_id,
                    error=str(e),
                )
                tally.fail(
                    [track for track, _ in pending],
                    f"Failed to prepare playlist: {e}",
                )
                await progress.fail(str(e))
                return self._build_result(tally, False, playlist_name, options, playlist_id, matches)

            progress.total = len(pending)
            await progress.enter(RunPhase.EXPORTING)

            success, playlist_id = await self._push_batches(
                pending, playlist_name, playlist_id, options, tally, progress, cancel_token
            )

            if success:
                await progress.complete()
            logger.info(
                "Playlist export finished",
                success=success,
                playlist_id=playlist_id,
                exported=len(tally.succeeded),
                skipped=len(tally.skipped),
                failed=len(tally.failed),
            )
            return self._build_result(tally, success, playlist_name, options, playlist_id, matches)

    async def _drop_present(
        self, playlist_id: str, pending: PendingSongs, tally: RunTally
    ) -> PendingSongs:
        present = set(await self.playlists.get_playlist_song_ids(playlist_id))
        remaining: PendingSongs = []
        for track, song_id in pending:
            if song_id in present:
                tally.skip(track, ALREADY_IN_PLAYLIST)
                continue
            present.add(song_id)
            remaining.append((track, song_id))
        logger.debug(
            "Filtered songs already in playlist",
            playlist_id=playlist_id,
            already_present=len(pending) - len(remaining),
        )
        return remaining

    async def _clear_playlist(self, playlist_id: str, batch_size: int) -> None:
        songs = await self.playlists.get_playlist_songs(playlist_id)
        if not songs:
            return
        # Highest index first so the indexes still to remove stay valid
        indexes = list(range(len(songs) - 1, -1, -1))
        for batch in chunked(indexes, batch_size):
            if not await self.playlists.update_playlist(playlist_id, [], batch):
                raise DestinationRequestError(f"Playlist {playlist_id} was not cleared")
        logger.debug(
            "Cleared playlist",
            playlist_id=playlist_id,
            removed=len(songs),
            batches=batch_count(len(songs), batch_size),
        )

    async def _push_batches(
        self,
        pending: PendingSongs,
        playlist_name: str,
        playlist_id: str | None,
        options: ExportOptions,
        tally: RunTally,
        progress: RunProgress,
        cancel_token: CancellationToken | None,
    ) -> tuple[bool, str | None]:
        """Send batches; returns (success, playlist id)."""
        if not pending and playlist_id is None:
            # Nothing eligible, still create the (empty) playlist
            check_cancellation(cancel_token, "export_playlist")
            try:
                playlist_id = await self.playlists.create_playlist(playlist_name, [])
            except DestinationRequestError as e:
                logger.error("Failed to create playlist", error=str(e))
                await progress.fail(str(e))
                return False, None
            return True, playlist_id

        total_batches = batch_count(len(pending), options.batch_size)
        for index, batch in enumerate(chunked(pending, options.batch_size), start=1):
            check_cancellation(cancel_token, "export_playlist")
            tracks = [track for track, _ in batch]
            song_ids = [song_id for _, song_id in batch]

            try:
                if playlist_id is None:
                    playlist_id = await self.playlists.create_playlist(
                        playlist_name, song_ids
                    )
                    logger.info("Created playlist", playlist_id=playlist_id)
                elif not await self.playlists.update_playlist(playlist_id, song_ids):
                    raise DestinationRequestError("Playlist update was not acknowledged")
            except DestinationRequestError as e:
                if playlist_id is None:
                    # Without a playlist no later batch can succeed
                    remaining = [track for track, _ in pending[len(tally.succeeded) :]]
                    tally.fail(remaining, f"Failed to create playlist: {e}")
                    logger.error("Failed to create playlist", error=str(e))
                    await progress.fail(str(e))
                    return False, None
                tally.fail(tracks, f"Batch {index}/{total_batches} failed: {e}")
                logger.warning(
                    "Export batch failed",
                    batch=index,
                    total_batches=total_batches,
                    batch_size=len(batch),
                    error=str(e),
                )
            else:
                tally.succeed(tracks)

            await progress.advance(
                step=len(batch), message=f"Batch {index}/{total_batches}"
            )

        return True, playlist_id

    @staticmethod
    def _build_result(
        tally: RunTally,
        success: bool,
        playlist_name: str,
        options: ExportOptions,
        playlist_id: str | None,
        matches: list[TrackMatch],
    ) -> ExportResult:
        return ResultFactory.create_export_result(
            tally,
            success=success,
            playlist_name=playlist_name,
            mode=options.mode,
            playlist_id=playlist_id,
            cached_matches=build_match_cache(matches),
        )
