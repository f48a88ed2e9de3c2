"""Unit tests for tour grouping and current-tour selection."""

from __future__ import annotations

from typing import Callable

from setlistscout.models.setlist import NO_TOUR_INFO, ShowRecord
from setlistscout.models.tour import TourGroup
from setlistscout.services.tour_selector import choose_tour, group_shows_by_tour


def _info(artist: str, tours: dict[str, tuple[int, list[str]]]) -> dict[str, dict[str, TourGroup]]:
    return {
        artist: {
            name: TourGroup(artist=artist, tour=name, count=count, years=years)
            for name, (count, years) in tours.items()
        }
    }


class TestGroupShowsByTour:
    def test_groups_by_artist_then_tour(self, make_show: Callable[..., ShowRecord]) -> None:
        shows = [
            make_show("1", tour="World Tour", event_date="01-05-2023"),
            make_show("2", tour="World Tour", event_date="01-05-2024"),
            make_show("3", tour=None, event_date="01-05-2019"),
            make_show("4", artist="Opener", tour="Support Slot", event_date="01-05-2024"),
        ]
        info = group_shows_by_tour(shows)

        assert list(info) == ["Coldplay", "Opener"]
        world = info["Coldplay"]["World Tour"]
        assert world.count == 2
        assert world.years == ["2023", "2024"]
        assert info["Coldplay"][NO_TOUR_INFO].count == 1

    def test_skips_shows_without_artist(self, make_show: Callable[..., ShowRecord]) -> None:
        assert group_shows_by_tour([make_show("1", artist="")]) == {}


class TestChooseTour:
    def test_prefers_only_named_tour(self) -> None:
        info = _info("ArtistX", {"No Tour Info": (5, ["2019"]), "World Tour": (20, ["2023"])})
        assert choose_tour(info, "ArtistX") == "World Tour"

    def test_most_recent_year_wins(self) -> None:
        info = _info("ArtistX", {"Old Tour": (30, ["2020"]), "New Tour": (4, ["2023"])})
        assert choose_tour(info, "ArtistX") == "New Tour"

    def test_tie_keeps_first_seen(self) -> None:
        info = _info("ArtistX", {"Leg One": (10, ["2023"]), "Leg Two": (10, ["2023"])})
        assert choose_tour(info, "ArtistX") == "Leg One"

    def test_placeholder_only(self) -> None:
        info = _info("ArtistX", {NO_TOUR_INFO: (5, ["2024"])})
        assert choose_tour(info, "ArtistX") == NO_TOUR_INFO

    def test_excludes_vip_and_soundcheck(self) -> None:
        info = _info(
            "ArtistX",
            {
                "VIP Soundcheck Experience": (5, ["2024"]),
                "Stadium Tour": (15, ["2023"]),
            },
        )
        assert choose_tour(info, "ArtistX") == "Stadium Tour"

    def test_keeps_excluded_when_nothing_else(self) -> None:
        info = _info("ArtistX", {"V.I.P. Night": (1, ["2022"]), "Sound Check Live": (1, ["2024"])})
        assert choose_tour(info, "ArtistX") == "Sound Check Live"

    def test_selects_matching_artist(self) -> None:
        info = {
            **_info("Opener", {"Support Tour": (3, ["2025"])}),
            **_info("Beyoncé", {"Renaissance World Tour": (50, ["2023"])}),
        }
        assert choose_tour(info, "beyonce") == "Renaissance World Tour"

    def test_falls_back_to_first_artist(self) -> None:
        info = {
            **_info("Opener", {"Support Tour": (3, ["2025"])}),
            **_info("Headliner", {"Main Tour": (50, ["2023"])}),
        }
        assert choose_tour(info, "Somebody Else") == "Support Tour"

    def test_empty(self) -> None:
        assert choose_tour({}, "Anyone") == ""
        assert choose_tour({"Anyone": {}}, "Anyone") == ""
