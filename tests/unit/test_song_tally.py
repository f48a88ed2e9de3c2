"""Unit tests for song-frequency aggregation."""

from __future__ import annotations

from collections import Counter
from typing import Callable

from setlistscout.models.setlist import SetlistPage, ShowRecord
from setlistscout.services.song_tally import get_song_tally, tally_shows


class TestTallyShows:
    def test_tape_songs_skipped(self, make_show: Callable[..., ShowRecord]) -> None:
        show = make_show("1", songs=("Intro Tape", "Yellow", "Clocks"), tape=("Intro Tape",))
        tally = tally_shows([show])

        assert len(tally.songs) == 2
        assert tally.total_shows_with_data == 1
        assert {entry.song for entry in tally.songs} == {"Yellow", "Clocks"}

    def test_covers_credited_to_original_artist(
        self, make_show: Callable[..., ShowRecord]
    ) -> None:
        show = make_show("1", songs=("Yellow", "Heroes"), covers={"Heroes": "David Bowie"})
        tally = tally_shows([show])

        artists = {entry.song: entry.artist for entry in tally.songs}
        assert artists == {"Yellow": "Coldplay", "Heroes": "David Bowie"}

    def test_counts_and_ordering(self, make_show: Callable[..., ShowRecord]) -> None:
        shows = [
            make_show("1", songs=("A", "B"), encore=("C",)),
            make_show("2", songs=("B", "C")),
            make_show("3", songs=("C",)),
        ]
        tally = tally_shows(shows)

        assert [(e.song, e.count) for e in tally.songs] == [("C", 3), ("B", 2), ("A", 1)]

    def test_equal_counts_keep_first_encounter_order(
        self, make_show: Callable[..., ShowRecord]
    ) -> None:
        tally = tally_shows([make_show("1", songs=("Zeta", "Alpha", "Mid"))])
        assert [e.song for e in tally.songs] == ["Zeta", "Alpha", "Mid"]

    def test_empty_setlists_counted_separately(
        self, make_show: Callable[..., ShowRecord]
    ) -> None:
        shows = [make_show("1"), make_show("2", songs=()), make_show("3", songs=())]
        tally = tally_shows(shows)

        assert tally.total_shows_with_data == 1
        assert tally.empty_setlist_count == 2

    def test_explicit_primary_artist(self, make_show: Callable[..., ShowRecord]) -> None:
        shows = [make_show("1", artist="Coldplay & Friends", songs=("Yellow",))]
        tally = tally_shows(shows, primary_artist="Coldplay")
        assert tally.songs[0].artist == "Coldplay"

    def test_primary_artist_fixed_by_first_show(
        self, make_show: Callable[..., ShowRecord]
    ) -> None:
        shows = [
            make_show("1", artist="Coldplay", songs=("Yellow",)),
            make_show("2", artist="Guest Act", songs=("Yellow",)),
        ]
        tally = tally_shows(shows)
        assert [(e.artist, e.count) for e in tally.songs] == [("Coldplay", 2)]

    def test_no_shows(self) -> None:
        tally = tally_shows([])
        assert tally.songs == []
        assert tally.total_shows_with_data == 0


class TestGetSongTally:
    def test_page_order_does_not_change_counts(
        self,
        make_show: Callable[..., ShowRecord],
        make_page: Callable[..., SetlistPage],
    ) -> None:
        page_one = make_page(
            [make_show("1", songs=("A", "B")), make_show("2", songs=("B", "C"))], page=1
        )
        page_two = make_page(
            [make_show("3", songs=("C", "D")), make_show("4", songs=("A", "C"))], page=2
        )

        forward = get_song_tally([page_one, page_two], primary_artist="Coldplay")
        reverse = get_song_tally([page_two, page_one], primary_artist="Coldplay")

        assert Counter({e.key: e.count for e in forward.songs}) == Counter(
            {e.key: e.count for e in reverse.songs}
        )
        assert forward.total_shows_with_data == reverse.total_shows_with_data == 4
