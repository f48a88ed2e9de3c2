"""Artist-name normalization and matching.

Two naming sources rarely agree byte-for-byte: a streaming service may say
"Beyoncé" where MusicBrainz or setlist.fm say "Beyonce", or add a "The"
prefix or a parenthetical suffix.  This module provides:

1. **normalize_name** -- lowercase, NFD decomposition, combining-mark
   removal, trim.
2. **is_artist_name_match** -- equality or substring containment of the
   normalized forms, in either direction.  Symmetric by construction.
3. **fuzzy_match** -- rapidfuzz ranking used when several catalog artists
   come back for one search and no exact or prefix match exists.
"""

from __future__ import annotations

import unicodedata

from rapidfuzz import fuzz, process


def normalize_name(name: str) -> str:
    """Lowercase *name*, strip diacritics and surrounding whitespace.

    Args:
        name: Raw artist name.

    Returns:
        Normalized name, e.g. ``"  Beyoncé "`` -> ``"beyonce"``.
    """
    decomposed = unicodedata.normalize("NFD", name.lower())
    # Drop the combining diacritical marks block (U+0300..U+036F) left
    # behind by the decomposition.
    stripped = "".join(ch for ch in decomposed if not "\u0300" <= ch <= "\u036f")
    return stripped.strip()


def is_artist_name_match(name_a: str | None, name_b: str | None) -> bool:
    """Decide whether two artist names refer to the same act.

    Args:
        name_a: Name from the first source (e.g. the streaming service).
        name_b: Name from the second source (e.g. MusicBrainz).

    Returns:
        ``True`` if the normalized names are equal or one contains the
        other.  Missing or empty input never matches.
    """
    if not name_a or not name_b:
        return False

    normalized_a = normalize_name(name_a)
    normalized_b = normalize_name(name_b)
    if not normalized_a or not normalized_b:
        return False

    return (
        normalized_a == normalized_b
        or normalized_a in normalized_b
        or normalized_b in normalized_a
    )


def fuzzy_match(
    query: str,
    candidates: list[str],
    threshold: float = 0.8,
) -> tuple[str, float] | None:
    """Find the closest candidate to *query* using rapidfuzz.

    ``token_sort_ratio`` ignores word order, so "Stones, The Rolling"
    still scores high against "The Rolling Stones".

    Args:
        query: The string to match.
        candidates: Candidate strings.
        threshold: Minimum similarity (0.0--1.0) to accept a match.

    Returns:
        ``(best_match, score)`` with the score in 0.0--1.0, or ``None``.
    """
    if not candidates:
        return None

    result = process.extractOne(
        normalize_name(query),
        [normalize_name(c) for c in candidates],
        scorer=fuzz.token_sort_ratio,
        score_cutoff=threshold * 100,
    )
    if result is None:
        return None

    _, score, index = result
    return (candidates[index], score / 100.0)
