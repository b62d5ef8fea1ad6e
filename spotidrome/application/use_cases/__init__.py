"""Use cases: matching, playlist export, favorites export and incremental update."""

from .export_favorites import FavoritesExporter, FavoritesOptions
from .export_playlist import ExportOptions, PlaylistExporter
from .match_tracks import BatchMatcher, MatchTracksResult
from .update_playlist import (
    IncrementalTrackMatch,
    IncrementalUpdateOrchestrator,
    UpdateAction,
    UpdateOptions,
)

__all__ = [
    "BatchMatcher",
    "ExportOptions",
    "FavoritesExporter",
    "FavoritesOptions",
    "IncrementalTrackMatch",
    "IncrementalUpdateOrchestrator",
    "MatchTracksResult",
    "PlaylistExporter",
    "UpdateAction",
    "UpdateOptions",
]
