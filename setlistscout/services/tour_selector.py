"""Canonical "current tour" selection.

:func:`group_shows_by_tour` groups the shows of a search page as
``{artist: {tour: TourGroup}}`` (insertion order = first appearance), and
:func:`choose_tour` reduces that grouping to a single tour name:

1. One artist key: take it.  Several: the first one whose name matches the
   requested artist, else the first key.
2. Several tours: drop the "No Tour Info" placeholder unless it is the
   only option.
3. One tour left: return it.
4. Drop names containing VIP / soundcheck keywords, unless that would
   drop them all.
5. Highest maximum year wins; ties keep the first-seen tour.

An empty string means "no usable tour identified".
"""

from __future__ import annotations

from collections.abc import Iterable

from setlistscout.models.setlist import NO_TOUR_INFO, ShowRecord
from setlistscout.models.tour import TourGroup
from setlistscout.utils.text_normalizer import is_artist_name_match

EXCLUSION_KEYWORDS: tuple[str, ...] = ("vip", "v.i.p.", "sound check", "soundcheck")

TourInfo = dict[str, dict[str, TourGroup]]


def group_shows_by_tour(shows: Iterable[ShowRecord]) -> TourInfo:
    """Group *shows* by artist name, then by tour name or placeholder.

    Shows without an artist name are skipped.  Each group's ``years`` is
    the sorted set of years found in ``dd-mm-yyyy`` event dates.
    """
    counts: dict[str, dict[str, int]] = {}
    years: dict[str, dict[str, set[str]]] = {}

    for show in shows:
        if not show.artist_name:
            continue
        tour = show.tour_or_placeholder
        artist_counts = counts.setdefault(show.artist_name, {})
        artist_years = years.setdefault(show.artist_name, {})
        artist_counts[tour] = artist_counts.get(tour, 0) + 1
        tour_years = artist_years.setdefault(tour, set())
        if show.year:
            tour_years.add(show.year)

    return {
        artist: {
            tour: TourGroup(
                artist=artist,
                tour=tour,
                count=count,
                years=sorted(years[artist][tour]),
            )
            for tour, count in tours.items()
        }
        for artist, tours in counts.items()
    }


def choose_tour(tour_info: TourInfo, target_name: str | None) -> str:
    """Pick the canonical current tour for *target_name*.

    Args:
        tour_info: Output of :func:`group_shows_by_tour`.
        target_name: The artist the user asked for.

    Returns:
        The chosen tour name, ``"No Tour Info"`` when only untoured shows
        exist, or ``""`` when the selected artist has no tours at all.
    """
    artist_names = list(tour_info)
    if not artist_names:
        return ""

    if len(artist_names) == 1:
        selected = artist_names[0]
    else:
        selected = next(
            (name for name in artist_names if is_artist_name_match(target_name, name)),
            artist_names[0],
        )

    tours = tour_info[selected]
    tour_names = list(tours)
    if not tour_names:
        return ""

    if len(tour_names) > 1:
        named = [name for name in tour_names if name.lower() != NO_TOUR_INFO.lower()]
        if named:
            tour_names = named

    if len(tour_names) == 1:
        return tour_names[0]

    candidates = [
        name
        for name in tour_names
        if not any(keyword in name.lower() for keyword in EXCLUSION_KEYWORDS)
    ]
    if not candidates:
        candidates = tour_names

    chosen = candidates[0]
    latest_year = 0
    for name in candidates:
        year = tours[name].max_year
        # Strict comparison keeps the first-seen tour on ties.
        if year > latest_year:
            latest_year = year
            chosen = name
    return chosen
