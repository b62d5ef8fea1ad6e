"""Run accumulators and result factory shared by the export use cases.

Each run keeps one RunTally; the ResultFactory turns it into the immutable
result object handed back to the caller so the statistics always agree with
the per-track lists.
"""

import time

from attrs import define, field

from spotidrome.domain.entities import (
    ExportError,
    ExportMode,
    ExportResult,
    ExportStatistics,
    FavoritesExportResult,
    FavoritesStatistics,
    SkippedTrack,
    Track,
    UpdateResult,
    UpdateStatistics,
)
from spotidrome.domain.matching.types import MatchCache


@define(slots=True)
class RunTally:
    """Mutable per-run accumulator of track outcomes."""

    total: int
    succeeded: list[Track] = field(factory=list)
    skipped: list[SkippedTrack] = field(factory=list)
    failed: list[Track] = field(factory=list)
    errors: list[ExportError] = field(factory=list)
    started_at: float = field(factory=time.perf_counter)

    def succeed(self, tracks: list[Track]) -> None:
        self.succeeded.extend(tracks)

    def skip(self, track: Track, reason: str) -> None:
        self.skipped.append(SkippedTrack(track=track, reason=reason))

    def fail(self, tracks: list[Track], reason: str, per_track: bool = True) -> None:
        """Record tracks as failed.

        With ``per_track`` one error is recorded for each track, otherwise a
        single error names the first track of the group.
        """
        if not tracks:
            return
        self.failed.extend(tracks)
        if per_track:
            self.errors.extend(ExportError.for_track(track, reason) for track in tracks)
        else:
            self.errors.append(ExportError.for_track(tracks[0], reason))

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started_at) * 1000)


class ResultFactory:
    """Factory for creating result objects from a finished RunTally."""

    @staticmethod
    def create_export_result(
        tally: RunTally,
        *,
        success: bool,
        playlist_name: str,
        mode: ExportMode,
        playlist_id: str | None,
        cached_matches: MatchCache,
    ) -> ExportResult:
        return ExportResult(
            success=success,
            playlist_id=playlist_id,
            playlist_name=playlist_name,
            mode=mode,
            statistics=ExportStatistics(
                total=tally.total,
                exported=len(tally.succeeded),
                skipped=len(tally.skipped),
                failed=len(tally.failed),
            ),
            exported_tracks=list(tally.succeeded),
            skipped_tracks=list(tally.skipped),
            failed_tracks=list(tally.failed),
            errors=list(tally.errors),
            duration_ms=tally.elapsed_ms,
            cached_matches=cached_matches,
        )

    @staticmethod
    def create_favorites_result(tally: RunTally, *, success: bool) -> FavoritesExportResult:
        return FavoritesExportResult(
            success=success,
            statistics=FavoritesStatistics(
                total=tally.total,
                starred=len(tally.succeeded),
                skipped=len(tally.skipped),
                failed=len(tally.failed),
            ),
            starred_tracks=list(tally.succeeded),
            skipped_tracks=list(tally.skipped),
            failed_tracks=list(tally.failed),
            errors=list(tally.errors),
            duration_ms=tally.elapsed_ms,
        )

    @staticmethod
    def create_update_result(
        tally: RunTally,
        *,
        success: bool,
        playlist_id: str,
        playlist_name: str,
        to_add: int,
    ) -> UpdateResult:
        """Build an UpdateResult.

        Statistics follow ``already = total - to_add`` and
        ``failed = to_add - added`` so they always sum to the total.
        """
        added = len(tally.succeeded)
        return UpdateResult(
            success=success,
            playlist_id=playlist_id,
            playlist_name=playlist_name,
            statistics=UpdateStatistics(
                total_source_tracks=tally.total,
                already_in_playlist=tally.total - to_add,
                added_to_playlist=added,
                failed=to_add - added,
            ),
            tracks_added=list(tally.succeeded),
            tracks_skipped=list(tally.skipped),
            errors=list(tally.errors),
            duration_ms=tally.elapsed_ms,
        )
