"""Tests for domain matching algorithms.

These tests verify the pure business logic of text normalization and
similarity scoring.
"""

import pytest

from spotidrome.domain.matching.algorithms import (
    calculate_artist_similarity,
    calculate_duration_similarity,
    calculate_match_score,
    calculate_title_similarity,
    is_strict_match,
    normalize_text,
)


class TestNormalizeText:
    """Test cases for text normalization."""

    def test_strips_diacritics_and_punctuation_spacing(self):
        assert normalize_text("  Beyoncé  -  Halo ") == "beyonce-halo"

    def test_folds_typographic_quotes(self):
        assert normalize_text("Don’t Stop Me Now") == "don't stop me now"

    def test_folds_dashes(self):
        assert normalize_text("Song – Remastered") == normalize_text("Song - Remastered")

    def test_empty_string(self):
        assert normalize_text("") == ""


class TestIsStrictMatch:
    """Test cases for normalized title and primary artist equality."""

    def test_match_ignores_case_and_accents(self, make_track, make_song):
        track = make_track(title="Halo", artist="Beyoncé")
        song = make_song(title="halo", artist="Beyonce")
        assert is_strict_match(track, song) is True

    def test_different_artist_is_not_strict(self, make_track, make_song):
        track = make_track(title="Halo", artist="Beyoncé")
        song = make_song(title="Halo", artist="Haloween Band")
        assert is_strict_match(track, song) is False

    def test_uses_primary_artist_only(self, make_track, make_song):
        track = make_track(title="Empire State of Mind", artist=["Jay-Z", "Alicia Keys"])
        song = make_song(title="Empire State of Mind", artist="Jay-Z")
        assert is_strict_match(track, song) is True


class TestCalculateTitleSimilarity:
    """Test cases for title similarity calculation."""

    def test_identical_titles(self):
        assert calculate_title_similarity("Paranoid Android", "Paranoid Android") == 1.0

    def test_different_case(self):
        assert calculate_title_similarity("Paranoid Android", "paranoid android") == 1.0

    def test_live_variation(self):
        result = calculate_title_similarity("Paranoid Android", "Paranoid Android - Live")
        assert result == 0.6

    def test_remix_variation(self):
        result = calculate_title_similarity("Karma Police", "Karma Police (Remix)")
        assert result == 0.6

    def test_completely_different_titles(self):
        assert calculate_title_similarity("Paranoid Android", "Yesterday") < 0.5


class TestCalculateArtistSimilarity:
    """Test cases for artist similarity."""

    def test_collaboration_string_matches_full_credits(self, make_track, make_song):
        track = make_track(artist=["Jay-Z", "Alicia Keys"])
        song = make_song(artist="Jay-Z, Alicia Keys")
        assert calculate_artist_similarity(track, song) == 1.0

    def test_missing_destination_artist_scores_zero(self, make_track, make_song):
        assert calculate_artist_similarity(make_track(), make_song(artist="")) == 0.0


class TestCalculateDurationSimilarity:
    """Test cases for duration proximity."""

    @pytest.mark.parametrize(
        ("first", "second", "expected"),
        [
            (200000, 201500, 1.0),
            (200000, 216000, 0.5),
            (200000, 230000, 0.0),
            (200000, None, 0.5),
            (None, None, 0.5),
        ],
    )
    def test_duration_similarity(self, first, second, expected):
        assert calculate_duration_similarity(first, second) == pytest.approx(expected)


class TestCalculateMatchScore:
    """Test cases for the weighted match score."""

    def test_identical_track_scores_one(self, make_track, make_song):
        assert calculate_match_score(make_track(), make_song()) == 1.0

    def test_score_is_bounded(self, make_track, make_song):
        score = calculate_match_score(
            make_track(title="Paranoid Android"),
            make_song(title="Yesterday", artist="The Beatles", duration_ms=125000),
        )
        assert 0.0 <= score < 0.5

    def test_live_version_title_penalty(self, make_track, make_song):
        score = calculate_match_score(
            make_track(), make_song(title="Paranoid Android - Live")
        )
        assert score == pytest.approx(0.8)
