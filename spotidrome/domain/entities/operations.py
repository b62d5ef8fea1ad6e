"""Operation-related domain entities.

Result objects handed back to callers at the end of an export, favorites or
incremental update run. They are built once and never mutated.
"""

from enum import Enum
from typing import TYPE_CHECKING

from attrs import define, field

from .track import Track

if TYPE_CHECKING:
    from spotidrome.domain.matching.types import CachedTrackMatch


class ExportMode(str, Enum):
    """How an export treats the destination playlist."""

    CREATE = "create"
    APPEND = "append"
    SYNC = "sync"
    OVERWRITE = "overwrite"


@define(frozen=True, slots=True)
class ExportError:
    """Structured per-track failure."""

    track_name: str
    artist_name: str
    reason: str

    @classmethod
    def for_track(cls, track: Track, reason: str) -> "ExportError":
        return cls(track_name=track.title, artist_name=track.artist_names, reason=reason)


@define(frozen=True, slots=True)
class SkippedTrack:
    """A track left out of a run, with the reason it was left out."""

    track: Track
    reason: str


@define(frozen=True, slots=True)
class ExportStatistics:
    total: int = 0
    exported: int = 0
    skipped: int = 0
    failed: int = 0


@define(frozen=True, slots=True)
class ExportResult:
    """Outcome of a playlist export.

    ``success`` is False only when the export could not proceed at all;
    partial batch failures show up in ``statistics.failed`` and ``errors``.
    """

    success: bool
    playlist_name: str
    mode: ExportMode
    statistics: ExportStatistics
    playlist_id: str | None = None
    exported_tracks: list[Track] = field(factory=list)
    skipped_tracks: list[SkippedTrack] = field(factory=list)
    failed_tracks: list[Track] = field(factory=list)
    errors: list[ExportError] = field(factory=list)
    duration_ms: int = 0
    cached_matches: "dict[str, CachedTrackMatch]" = field(factory=dict)


@define(frozen=True, slots=True)
class FavoritesStatistics:
    total: int = 0
    starred: int = 0
    skipped: int = 0
    failed: int = 0


@define(frozen=True, slots=True)
class FavoritesExportResult:
    """Outcome of starring matched songs on the destination."""

    success: bool
    statistics: FavoritesStatistics
    starred_tracks: list[Track] = field(factory=list)
    skipped_tracks: list[SkippedTrack] = field(factory=list)
    failed_tracks: list[Track] = field(factory=list)
    errors: list[ExportError] = field(factory=list)
    duration_ms: int = 0


@define(frozen=True, slots=True)
class UpdateStatistics:
    total_source_tracks: int = 0
    already_in_playlist: int = 0
    added_to_playlist: int = 0
    failed: int = 0


@define(frozen=True, slots=True)
class UpdateResult:
    """Outcome of an incremental playlist update."""

    success: bool
    playlist_id: str
    playlist_name: str
    statistics: UpdateStatistics
    tracks_added: list[Track] = field(factory=list)
    tracks_skipped: list[SkippedTrack] = field(factory=list)
    errors: list[ExportError] = field(factory=list)
    duration_ms: int = 0


@define(frozen=True, slots=True)
class UpdatePreview:
    """Dry-run classification of an incremental update."""

    total_source_tracks: int
    already_in_playlist: int
    estimated_to_add: int
    needs_rematch: int
