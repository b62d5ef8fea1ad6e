"""Individual strategies of the matching cascade.

Each strategy returns a TrackMatch when it reaches a verdict and None when
the cascade should fall through to the next strategy.
"""

from collections.abc import Callable, Sequence

from spotidrome.config import get_logger
from spotidrome.domain.entities.track import DestinationSong, Track
from spotidrome.domain.exceptions import DestinationAuthError, DestinationError
from spotidrome.domain.interfaces import DestinationCatalog
from spotidrome.domain.matching.algorithms import is_strict_match
from spotidrome.domain.matching.types import MatchStrategy, TrackMatch

logger = get_logger(__name__)

Scorer = Callable[[Track, DestinationSong], float]


async def match_by_isrc(
    track: Track, catalog: DestinationCatalog
) -> TrackMatch | None:
    """Direct ISRC lookup. Never ambiguous.

    Lookup failures other than authorization fall through like a miss.
    """
    if not track.isrc:
        return None

    try:
        song = await catalog.search_by_isrc(track.isrc)
    except DestinationAuthError:
        raise
    except DestinationError as e:
        logger.warning(
            "ISRC lookup failed, falling through",
            track_id=track.id,
            isrc=track.isrc,
            error=str(e),
        )
        return None

    if song is None:
        return None
    return TrackMatch.matched(track, song, MatchStrategy.ISRC, 1.0)


def match_by_strict(
    track: Track, candidates: Sequence[DestinationSong]
) -> TrackMatch | None:
    """Normalized title + primary artist equality; exactly one hit wins."""
    hits = [song for song in candidates if is_strict_match(track, song)]
    if len(hits) != 1:
        if len(hits) > 1:
            logger.debug(
                "Multiple strict hits, deferring to fuzzy",
                track_id=track.id,
                hits=len(hits),
            )
        return None
    return TrackMatch.matched(track, hits[0], MatchStrategy.STRICT, 1.0)


def match_by_fuzzy(
    track: Track,
    candidates: Sequence[DestinationSong],
    scorer: Scorer,
    threshold: float,
    tie_margin: float,
) -> TrackMatch | None:
    """Pick the best scoring candidate at or above ``threshold``.

    Candidates at or above the threshold whose score is within ``tie_margin``
    of the best form a tie; two or more of them make the track ambiguous.
    """
    if not candidates:
        return None

    scored = sorted(
        ((max(0.0, min(scorer(track, song), 1.0)), song) for song in candidates),
        key=lambda pair: pair[0],
        reverse=True,
    )
    best_score, best_song = scored[0]
    if best_score < threshold:
        logger.debug(
            "Best fuzzy candidate below threshold",
            track_id=track.id,
            best_score=best_score,
            threshold=threshold,
        )
        return None

    tying = [
        song
        for score, song in scored
        if score >= threshold and best_score - score < tie_margin
    ]
    if len(tying) > 1:
        return TrackMatch.ambiguous(track, tying, best_score)
    return TrackMatch.matched(track, best_song, MatchStrategy.FUZZY, best_score)
