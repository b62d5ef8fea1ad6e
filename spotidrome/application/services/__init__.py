"""Application services: the matching cascade and its strategies."""

from .matching_service import MatchingOptions, TrackMatcher
from .matching_strategies import match_by_fuzzy, match_by_isrc, match_by_strict

__all__ = [
    "MatchingOptions",
    "TrackMatcher",
    "match_by_fuzzy",
    "match_by_isrc",
    "match_by_strict",
]
