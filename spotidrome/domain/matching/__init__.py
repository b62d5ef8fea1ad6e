"""Track matching domain: verdict types and similarity algorithms."""

from .algorithms import (
    calculate_match_score,
    calculate_title_similarity,
    is_strict_match,
    normalize_text,
)
from .types import (
    CachedTrackMatch,
    ExportEstimate,
    MatchCache,
    MatchStatistics,
    MatchStatus,
    MatchStrategy,
    TrackMatch,
    build_match_cache,
    estimate_export,
    get_match_statistics,
)

__all__ = [
    "CachedTrackMatch",
    "ExportEstimate",
    "MatchCache",
    "MatchStatistics",
    "MatchStatus",
    "MatchStrategy",
    "TrackMatch",
    "build_match_cache",
    "calculate_match_score",
    "calculate_title_similarity",
    "estimate_export",
    "get_match_statistics",
    "is_strict_match",
    "normalize_text",
]
