"""Pure algorithms for track matching and similarity scoring.

These functions contain no I/O and implement the core business logic for
deciding how well a source track matches a destination song.
"""

import re
import unicodedata

from rapidfuzz import fuzz

from spotidrome.domain.entities.track import DestinationSong, Track

# Similarity scoring configuration
SIMILARITY_CONFIG = {
    # Component weights (sum to 1.0)
    "title_weight": 0.5,
    "artist_weight": 0.3,
    "duration_weight": 0.2,
    # Duration proximity
    "duration_tolerance_ms": 2000,  # Full score if within 2 seconds
    "duration_zero_ms": 30000,  # Zero score at 30 seconds apart
    "duration_missing_score": 0.5,  # Neutral when either side lacks duration
    # Title similarity constants
    "variation_similarity_score": 0.6,  # Score when a variation marker is found
    "identical_similarity_score": 1.0,  # Score for identical titles
}

VARIATION_MARKERS = [
    "live",
    "remix",
    "acoustic",
    "demo",
    "remaster",
    "radio edit",
    "extended",
    "instrumental",
    "album version",
    "single version",
]

# Typographic characters folded to their ASCII counterparts
_CHAR_FOLDS = str.maketrans(
    {
        "\u2018": "'",
        "\u2019": "'",
        "\u201c": '"',
        "\u201d": '"',
        "\u2013": "-",
        "\u2014": "-",
        "\u00a0": " ",
    }
)
_PUNCT_SPACING = re.compile(r"\s*([^\w\s])\s*")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Normalize text for comparison.

    Lowercases, strips diacritics, folds typographic quotes and dashes,
    removes spacing around punctuation and collapses whitespace.

    >>> normalize_text("  Beyoncé  -  Halo ")
    'beyonce-halo'
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text.translate(_CHAR_FOLDS))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    collapsed = _WHITESPACE.sub(" ", stripped.lower()).strip()
    return _PUNCT_SPACING.sub(r"\1", collapsed)


def is_strict_match(track: Track, song: DestinationSong) -> bool:
    """True if title and primary artist are equal after normalization."""
    if normalize_text(track.title) != normalize_text(song.title):
        return False
    return normalize_text(track.primary_artist) == normalize_text(song.artist)


def calculate_title_similarity(title1: str, title2: str) -> float:
    """Calculate title similarity accounting for variations like 'Live', 'Remix', etc."""
    title1, title2 = normalize_text(title1), normalize_text(title2)

    # 1. Check if titles are identical
    if title1 == title2:
        return SIMILARITY_CONFIG["identical_similarity_score"]

    # 2. Check for containment with extra tokens
    # This catches cases like "Paranoid Android" vs "Paranoid Android - Live"
    if title1 and title2:
        longer, shorter = (title2, title1) if title1 in title2 else (title1, title2)
        if shorter in longer:
            remaining = longer.replace(shorter, "").strip("- ()[]").strip()
            if any(marker in remaining for marker in VARIATION_MARKERS):
                return SIMILARITY_CONFIG["variation_similarity_score"]

    # 3. Use token_set_ratio for better handling of word order and extra words
    return fuzz.token_set_ratio(title1, title2) / 100.0


def calculate_artist_similarity(track: Track, song: DestinationSong) -> float:
    """Best similarity of the destination artist against the source credits.

    Destination servers often store collaborations as a single string, so the
    full credit list is compared as well as the primary artist.
    """
    if not song.artist:
        return 0.0
    destination = normalize_text(song.artist)
    candidates = {normalize_text(track.primary_artist), normalize_text(track.artist_names)}
    return max(fuzz.token_sort_ratio(name, destination) for name in candidates) / 100.0


def calculate_duration_similarity(
    duration_ms: int | None, other_ms: int | None
) -> float:
    """Score duration proximity in [0, 1], linear between tolerance and zero point."""
    if not duration_ms or not other_ms:
        return SIMILARITY_CONFIG["duration_missing_score"]

    diff = abs(duration_ms - other_ms)
    tolerance = SIMILARITY_CONFIG["duration_tolerance_ms"]
    zero_at = SIMILARITY_CONFIG["duration_zero_ms"]
    if diff <= tolerance:
        return 1.0
    if diff >= zero_at:
        return 0.0
    return 1.0 - (diff - tolerance) / (zero_at - tolerance)


def calculate_match_score(track: Track, song: DestinationSong) -> float:
    """Weighted similarity of a source track and a destination song in [0, 1]."""
    score = (
        SIMILARITY_CONFIG["title_weight"]
        * calculate_title_similarity(track.title, song.title)
        + SIMILARITY_CONFIG["artist_weight"] * calculate_artist_similarity(track, song)
        + SIMILARITY_CONFIG["duration_weight"]
        * calculate_duration_similarity(track.duration_ms, song.duration_ms)
    )
    return round(max(0.0, min(score, 1.0)), 4)
