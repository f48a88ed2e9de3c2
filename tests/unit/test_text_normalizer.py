"""Unit tests for artist name normalization and matching."""

from __future__ import annotations

import pytest

from setlistscout.utils.text_normalizer import fuzzy_match, is_artist_name_match, normalize_name


class TestNormalizeName:
    def test_lowercases_and_trims(self) -> None:
        assert normalize_name("  Coldplay ") == "coldplay"

    def test_strips_diacritics(self) -> None:
        assert normalize_name("Beyoncé") == "beyonce"
        assert normalize_name("Sigur Rós") == "sigur ros"
        assert normalize_name("Motörhead") == "motorhead"

    def test_empty(self) -> None:
        assert normalize_name("") == ""


class TestIsArtistNameMatch:
    def test_diacritic_insensitive(self) -> None:
        assert is_artist_name_match("Beyoncé", "beyonce") is True

    def test_substring_either_direction(self) -> None:
        assert is_artist_name_match("The Beatles", "Beatles") is True
        assert is_artist_name_match("Beatles", "The Beatles") is True
        assert is_artist_name_match("Prince (Official)", "prince") is True

    def test_different_artists(self) -> None:
        assert is_artist_name_match("Metallica", "Megadeth") is False

    @pytest.mark.parametrize("name_a, name_b", [("", "Anything"), ("Anything", ""), (None, "x")])
    def test_missing_input_never_matches(self, name_a: str | None, name_b: str | None) -> None:
        assert is_artist_name_match(name_a, name_b) is False

    def test_whitespace_only_never_matches(self) -> None:
        assert is_artist_name_match("   ", "Coldplay") is False

    @pytest.mark.parametrize(
        "name_a, name_b",
        [
            ("Beyoncé", "beyonce"),
            ("The Beatles", "Beatles"),
            ("Metallica", "Megadeth"),
            ("Sigur Rós", "SIGUR ROS"),
            ("", "Coldplay"),
            ("Bon Iver", "Iver"),
        ],
    )
    def test_symmetric(self, name_a: str, name_b: str) -> None:
        assert is_artist_name_match(name_a, name_b) == is_artist_name_match(name_b, name_a)


class TestFuzzyMatch:
    def test_word_order_ignored(self) -> None:
        result = fuzzy_match("Rolling Stones The", ["Coldplay", "The Rolling Stones"])
        assert result is not None
        assert result[0] == "The Rolling Stones"
        assert result[1] == pytest.approx(1.0)

    def test_returns_original_candidate_spelling(self) -> None:
        result = fuzzy_match("beyonce", ["Beyoncé", "Bruno Mars"])
        assert result is not None
        assert result[0] == "Beyoncé"

    def test_below_threshold(self) -> None:
        assert fuzzy_match("Radiohead", ["Metallica", "Madonna"]) is None

    def test_no_candidates(self) -> None:
        assert fuzzy_match("Radiohead", []) is None
