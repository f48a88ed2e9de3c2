"""Song-frequency aggregation over fetched setlist pages.

Flattens show -> set section -> song into per-song play counts keyed by
``attributed artist|song``.  Covers are credited to the covered artist,
everything else to the primary artist, which is fixed once per tally
(explicit argument, or the artist of the very first show).  Songs played
from tape before the show are skipped.  Shows with no set sections are
counted separately and do not contribute to ``total_shows_with_data``.

The output is sorted by descending count; ``sorted`` is stable, so songs
with equal counts keep their first-encounter order.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from setlistscout.models.setlist import SetlistPage, ShowRecord
from setlistscout.models.tally import SongTally, SongTallyEntry
from setlistscout.utils.logging import get_logger

_logger = get_logger(__name__)


def _first_artist(shows: Sequence[ShowRecord]) -> str:
    for show in shows:
        if show.artist_name:
            return show.artist_name
    return ""


def tally_shows(shows: Sequence[ShowRecord], primary_artist: str | None = None) -> SongTally:
    """Tally a flat, ordered list of shows.

    Args:
        shows: Shows in page/show order.
        primary_artist: Artist credited with non-cover songs.  Defaults to
            the artist of the first show.

    Returns:
        The ordered :class:`SongTally`.
    """
    main_artist = primary_artist if primary_artist is not None else _first_artist(shows)

    counts: dict[str, int] = {}
    labels: dict[str, tuple[str, str]] = {}
    total_with_data = 0
    empty_count = 0

    for show in shows:
        if not show.sets:
            empty_count += 1
            continue
        total_with_data += 1

        for section in show.sets:
            for song in section.songs:
                if song.tape:
                    continue
                artist = song.cover if song.cover else main_artist
                key = f"{artist}|{song.name}"
                if key in counts:
                    counts[key] += 1
                else:
                    counts[key] = 1
                    labels[key] = (artist, song.name)

    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    entries = [
        SongTallyEntry(artist=labels[key][0], song=labels[key][1], count=count)
        for key, count in ordered
    ]

    _logger.debug(
        "song_tally_built",
        primary_artist=main_artist,
        songs=len(entries),
        shows_with_data=total_with_data,
        empty_setlists=empty_count,
    )
    return SongTally(
        songs=entries,
        total_shows_with_data=total_with_data,
        empty_setlist_count=empty_count,
    )


def get_song_tally(pages: Iterable[SetlistPage], primary_artist: str | None = None) -> SongTally:
    """Tally every show across *pages*, preserving page order.

    Args:
        pages: Fetched pages for one artist/tour, in page order.
        primary_artist: See :func:`tally_shows`.
    """
    shows = [show for page in pages for show in page.shows]
    return tally_shows(shows, primary_artist=primary_artist)
