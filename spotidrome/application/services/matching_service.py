"""Matching cascade orchestration.

TrackMatcher runs the ISRC -> strict -> fuzzy cascade for one track against
an injected destination catalog, short-circuiting on the first confident
verdict.

Clean Architecture compliant - uses dependency injection for external concerns.
"""

from attrs import define, field, validators

from spotidrome.config import get_logger, settings
from spotidrome.domain.entities.track import DestinationSong, Track
from spotidrome.domain.exceptions import DestinationAuthError, DestinationError
from spotidrome.domain.interfaces import DestinationCatalog
from spotidrome.domain.matching.algorithms import calculate_match_score
from spotidrome.domain.matching.types import TrackMatch

from .matching_strategies import (
    Scorer,
    match_by_fuzzy,
    match_by_isrc,
    match_by_strict,
)

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class MatchingOptions:
    """Cascade configuration."""

    enable_isrc: bool = True
    enable_strict: bool = True
    enable_fuzzy: bool = True
    fuzzy_threshold: float = field(
        default=0.8, validator=[validators.ge(0.0), validators.le(1.0)]
    )
    tie_margin: float = field(default=0.02, validator=validators.ge(0.0))

    @classmethod
    def from_settings(cls, **overrides) -> "MatchingOptions":
        """Build options from configured defaults, applying explicit overrides."""
        values = {
            "enable_isrc": settings.matching.enable_isrc,
            "enable_strict": settings.matching.enable_strict,
            "enable_fuzzy": settings.matching.enable_fuzzy,
            "fuzzy_threshold": settings.matching.fuzzy_threshold,
            "tie_margin": settings.matching.tie_margin,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class TrackMatcher:
    """Runs the matching cascade for single tracks.

    Search results are fetched once per track and shared by the strict and
    fuzzy strategies.
    """

    def __init__(
        self,
        catalog: DestinationCatalog,
        options: MatchingOptions | None = None,
        scorer: Scorer | None = None,
    ):
        self.catalog = catalog
        self.options = options or MatchingOptions()
        self.scorer = scorer or calculate_match_score

    async def match_track(self, track: Track) -> TrackMatch:
        """Match one track. Only authorization failures propagate."""
        opts = self.options

        if opts.enable_isrc:
            result = await match_by_isrc(track, self.catalog)
            if result is not None:
                return result

        if opts.enable_strict or opts.enable_fuzzy:
            candidates = await self._search_candidates(track)

            if opts.enable_strict:
                result = match_by_strict(track, candidates)
                if result is not None:
                    return result

            if opts.enable_fuzzy:
                result = match_by_fuzzy(
                    track,
                    candidates,
                    self.scorer,
                    opts.fuzzy_threshold,
                    opts.tie_margin,
                )
                if result is not None:
                    return result

        return TrackMatch.unmatched(track)

    async def _search_candidates(self, track: Track) -> list[DestinationSong]:
        try:
            results = await self.catalog.search_songs(track.title, track.primary_artist)
        except DestinationAuthError:
            raise
        except DestinationError as e:
            logger.warning(
                "Destination search failed, treating as no candidates",
                track_id=track.id,
                title=track.title,
                error=str(e),
            )
            return []

        # Collapse duplicate ids, keep first occurrence order
        unique: dict[str, DestinationSong] = {}
        for song in results:
            unique.setdefault(song.id, song)
        return list(unique.values())
