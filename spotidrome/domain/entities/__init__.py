"""Core domain entities representing music concepts."""

# Operation-related entities
from .operations import (
    ExportError,
    ExportMode,
    ExportResult,
    ExportStatistics,
    FavoritesExportResult,
    FavoritesStatistics,
    SkippedTrack,
    UpdatePreview,
    UpdateResult,
    UpdateStatistics,
)

# Track-related entities
from .track import Artist, DestinationSong, Track

__all__ = [
    # Track entities
    "Artist",
    "DestinationSong",
    "Track",
    # Operation entities
    "ExportError",
    "ExportMode",
    "ExportResult",
    "ExportStatistics",
    "FavoritesExportResult",
    "FavoritesStatistics",
    "SkippedTrack",
    "UpdatePreview",
    "UpdateResult",
    "UpdateStatistics",
]
