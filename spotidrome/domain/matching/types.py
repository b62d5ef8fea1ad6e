"""Pure domain types for track matching.

These types represent the core concepts in our matching domain with zero external dependencies.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Any

from attrs import define, field

from spotidrome.domain.entities.track import DestinationSong, Track


class MatchStrategy(str, Enum):
    """Strategy of the cascade that produced a verdict."""

    ISRC = "isrc"
    STRICT = "strict"
    FUZZY = "fuzzy"
    NONE = "none"


class MatchStatus(str, Enum):
    """Outcome of matching one source track."""

    MATCHED = "matched"
    AMBIGUOUS = "ambiguous"
    UNMATCHED = "unmatched"


@define(frozen=True, slots=True)
class TrackMatch:
    """Verdict for one source track against the destination catalog.

    Invariants are checked on construction:
    - matched tracks carry a destination song
    - unmatched tracks carry none
    - ambiguous tracks carry no chosen song and at least two candidates,
      ordered best first
    """

    source_track: Track
    status: MatchStatus
    match_strategy: MatchStrategy = MatchStrategy.NONE
    match_score: float = 0.0
    destination_song: DestinationSong | None = None
    candidates: list[DestinationSong] = field(factory=list)

    def __attrs_post_init__(self) -> None:
        if not 0.0 <= self.match_score <= 1.0:
            raise ValueError(f"Match score must be within [0, 1], got {self.match_score}")
        if self.status is MatchStatus.MATCHED and self.destination_song is None:
            raise ValueError("Matched track requires a destination song")
        if self.status is MatchStatus.UNMATCHED and self.destination_song is not None:
            raise ValueError("Unmatched track cannot carry a destination song")
        if self.status is MatchStatus.AMBIGUOUS:
            if self.destination_song is not None:
                raise ValueError("Ambiguous track cannot have a chosen destination song")
            if len(self.candidates) < 2:
                raise ValueError("Ambiguous track requires at least two candidates")

    @classmethod
    def matched(
        cls,
        track: Track,
        song: DestinationSong,
        strategy: MatchStrategy,
        score: float = 1.0,
    ) -> "TrackMatch":
        return cls(
            source_track=track,
            status=MatchStatus.MATCHED,
            match_strategy=strategy,
            match_score=score,
            destination_song=song,
        )

    @classmethod
    def ambiguous(
        cls,
        track: Track,
        candidates: list[DestinationSong],
        score: float,
    ) -> "TrackMatch":
        return cls(
            source_track=track,
            status=MatchStatus.AMBIGUOUS,
            match_strategy=MatchStrategy.FUZZY,
            match_score=score,
            candidates=list(candidates),
        )

    @classmethod
    def unmatched(cls, track: Track) -> "TrackMatch":
        return cls(source_track=track, status=MatchStatus.UNMATCHED)

    @property
    def is_matched(self) -> bool:
        return self.status is MatchStatus.MATCHED

    @property
    def is_ambiguous(self) -> bool:
        return self.status is MatchStatus.AMBIGUOUS

    @property
    def best_song(self) -> DestinationSong | None:
        """Chosen song, or the top-ranked candidate for ambiguous matches."""
        if self.destination_song is not None:
            return self.destination_song
        if self.candidates:
            return self.candidates[0]
        return None


@define(frozen=True, slots=True)
class CachedTrackMatch:
    """Persistable projection of a TrackMatch keyed by source track id."""

    source_track_id: str
    status: MatchStatus
    match_strategy: MatchStrategy
    match_score: float
    destination_song_id: str | None = None

    @classmethod
    def from_match(cls, match: TrackMatch) -> "CachedTrackMatch":
        return cls(
            source_track_id=match.source_track.id,
            status=match.status,
            match_strategy=match.match_strategy,
            match_score=match.match_score,
            destination_song_id=(
                match.destination_song.id if match.destination_song else None
            ),
        )

    def as_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for any exchange format."""
        return {
            "source_track_id": self.source_track_id,
            "destination_song_id": self.destination_song_id,
            "status": self.status.value,
            "match_strategy": self.match_strategy.value,
            "match_score": round(self.match_score, 4),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CachedTrackMatch":
        return cls(
            source_track_id=str(data["source_track_id"]),
            destination_song_id=data.get("destination_song_id"),
            status=MatchStatus(data["status"]),
            match_strategy=MatchStrategy(data.get("match_strategy", "none")),
            match_score=float(data.get("match_score", 0.0)),
        )


@define(frozen=True, slots=True)
class MatchStatistics:
    """Aggregate counts over a list of matches."""

    total: int = 0
    matched: int = 0
    ambiguous: int = 0
    unmatched: int = 0

    @property
    def matched_percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.matched / self.total * 100, 1)


@define(frozen=True, slots=True)
class ExportEstimate:
    """Preview of how many tracks an export would push or skip."""

    estimated_exported: int
    estimated_skipped: int


# Type aliases for clarity
MatchCache = dict[str, CachedTrackMatch]


def build_match_cache(matches: Iterable[TrackMatch]) -> MatchCache:
    """Project matches into the cache map consumed by incremental updates."""
    return {
        match.source_track.id: CachedTrackMatch.from_match(match) for match in matches
    }


def get_match_statistics(matches: Iterable[TrackMatch]) -> MatchStatistics:
    """Count matches by status."""
    counts = dict.fromkeys(MatchStatus, 0)
    for match in matches:
        counts[match.status] += 1
    return MatchStatistics(
        total=sum(counts.values()),
        matched=counts[MatchStatus.MATCHED],
        ambiguous=counts[MatchStatus.AMBIGUOUS],
        unmatched=counts[MatchStatus.UNMATCHED],
    )


def estimate_export(
    statistics: MatchStatistics, skip_unmatched: bool = True
) -> ExportEstimate:
    """Estimate export outcome before touching the destination.

    Ambiguous matches export their top candidate unless ``skip_unmatched``
    is set, in which case they are skipped along with unmatched tracks.
    """
    if skip_unmatched:
        return ExportEstimate(
            estimated_exported=statistics.matched,
            estimated_skipped=statistics.unmatched + statistics.ambiguous,
        )
    return ExportEstimate(
        estimated_exported=statistics.matched + statistics.ambiguous,
        estimated_skipped=statistics.unmatched,
    )
