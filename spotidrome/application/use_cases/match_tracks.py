"""MatchTracks use case: run the matching cascade over an ordered track list.

Tracks are matched sequentially in input order. Cancellation is sampled
before every track; a cancelled run raises instead of returning a partial
list, so callers wanting partial progress must keep the last progress event.
"""

from attrs import define, field

from spotidrome.application.services.matching_service import (
    MatchingOptions,
    TrackMatcher,
)
from spotidrome.application.services.matching_strategies import Scorer
from spotidrome.application.utilities.cancellation import (
    CancellationToken,
    check_cancellation,
)
from spotidrome.application.utilities.progress import (
    ProgressCallback,
    RunPhase,
    RunProgress,
)
from spotidrome.config import get_logger
from spotidrome.domain.entities.track import Track
from spotidrome.domain.interfaces import DestinationCatalog
from spotidrome.domain.matching.types import (
    MatchStatistics,
    TrackMatch,
    get_match_statistics,
)

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class MatchTracksResult:
    """Ordered matches (one per input track) plus their aggregate counts."""

    matches: list[TrackMatch] = field(factory=list)
    statistics: MatchStatistics = field(factory=MatchStatistics)


class BatchMatcher:
    """Drive the cascade over a list of tracks with progress and cancellation."""

    def __init__(
        self,
        catalog: DestinationCatalog,
        options: MatchingOptions | None = None,
        scorer: Scorer | None = None,
    ):
        self.matcher = TrackMatcher(catalog, options, scorer)

    @property
    def options(self) -> MatchingOptions:
        return self.matcher.options

    async def match_tracks(
        self,
        tracks: list[Track],
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> MatchTracksResult:
        """Match every track in order.

        Args:
            tracks: Source tracks to match
            on_progress: Called after each track with phase ``matching``
            cancel_token: Checked before each track

        Returns:
            MatchTracksResult with ``len(matches) == len(tracks)``

        Raises:
            OperationCancelledError: If the token is cancelled mid-run
            DestinationAuthError: If the destination rejects our credentials
        """
        progress = RunProgress(total=len(tracks), callback=on_progress)
        matches: list[TrackMatch] = []

        logger.info(
            "Starting track matching",
            track_count=len(tracks),
            fuzzy_threshold=self.options.fuzzy_threshold,
        )
        progress.phase = RunPhase.MATCHING

        for track in tracks:
            check_cancellation(cancel_token, "match_tracks")
            match = await self.matcher.match_track(track)
            matches.append(match)
            await progress.advance(
                current_track=f"{track.primary_artist} - {track.title}"
            )

        statistics = get_match_statistics(matches)
        logger.info(
            "Track matching complete",
            total=statistics.total,
            matched=statistics.matched,
            ambiguous=statistics.ambiguous,
            unmatched=statistics.unmatched,
        )
        return MatchTracksResult(matches=matches, statistics=statistics)
