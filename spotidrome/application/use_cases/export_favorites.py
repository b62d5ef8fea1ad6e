"""ExportFavorites use case: star matched songs on the destination.

Follows the same batching and partial-failure rules as playlist export,
targeting the star mutation instead of playlist membership.
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
from spotidrome.domain.entities import FavoritesExportResult
from spotidrome.domain.exceptions import DestinationRequestError
from spotidrome.domain.interfaces import DestinationFavorites
from spotidrome.domain.matching.types import TrackMatch

from .export_playlist import select_exportable

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class FavoritesOptions:
    skip_unmatched: bool = True
    batch_size: int = field(default=DEFAULT_BATCH_SIZE, validator=validators.gt(0))


class FavoritesExporter:
    """Star every exportable match on the destination server."""

    def __init__(self, favorites: DestinationFavorites):
        self.favorites = favorites

    async def export_favorites(
        self,
        matches: list[TrackMatch],
        options: FavoritesOptions | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> FavoritesExportResult:
        """Star matched songs in batches.

        A song id already starred earlier in the same run counts as starred
        for later tracks without a second request.
        """
        options = options or FavoritesOptions()
        tally = RunTally(total=len(matches))
        progress = RunProgress(total=0, callback=on_progress)

        with logger.contextualize(operation="export_favorites"):
            logger.info("Starting favorites export", track_count=len(matches))
            await progress.enter(RunPhase.PREPARING)

            pending = select_exportable(matches, options.skip_unmatched, tally)
            progress.total = len(pending)
            await progress.enter(RunPhase.EXPORTING)

            starred_ids: set[str] = set()
            total_batches = batch_count(len(pending), options.batch_size)
            for index, batch in enumerate(chunked(pending, options.batch_size), start=1):
                check_cancellation(cancel_token, "export_favorites")
                tracks = [track for track, _ in batch]
                new_ids = list(
                    dict.fromkeys(
                        song_id for _, song_id in batch if song_id not in starred_ids
                    )
                )

                try:
                    if new_ids and not await self.favorites.star(new_ids):
                        raise DestinationRequestError("Star request was not acknowledged")
                except DestinationRequestError as e:
                    tally.fail(tracks, f"Batch {index}/{total_batches} failed: {e}")
                    logger.warning(
                        "Favorites batch failed",
                        batch=index,
                        total_batches=total_batches,
                        error=str(e),
                    )
                else:
                    starred_ids.update(new_ids)
                    tally.succeed(tracks)

                await progress.advance(
                    step=len(batch), message=f"Batch {index}/{total_batches}"
                )

            await progress.complete()
            logger.info(
                "Favorites export finished",
                starred=len(tally.succeeded),
                skipped=len(tally.skipped),
                failed=len(tally.failed),
            )
            return ResultFactory.create_favorites_result(tally, success=True)
