"""Unit tests for setlist, tour and progress models."""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Callable

import pytest
from pydantic import ValidationError

from setlistscout.models.progress import CompleteEvent, ConnectionEvent, ErrorEvent, UpdateEvent
from setlistscout.models.setlist import NO_TOUR_INFO, SetlistPage, ShowRecord, parse_event_date
from setlistscout.models.tally import SongTally, SongTallyEntry
from setlistscout.models.tour import CachedTourSet, TourGroup, TourSummary
from setlistscout.utils.errors import InvalidQueryError


# ======================================================================
# ShowRecord
# ======================================================================


class TestShowRecord:
    def test_from_api_flattens_nested_fields(self, make_show_payload: Callable[..., dict]) -> None:
        raw = make_show_payload(
            "abc", artist="Coldplay", event_date="15-08-2023", tour="Music of the Spheres"
        )
        show = ShowRecord.from_api(raw)

        assert show.id == "abc"
        assert show.artist_name == "Coldplay"
        assert show.venue_name == "Arena"
        assert show.city == "London"
        assert show.country == "UK"
        assert show.tour_name == "Music of the Spheres"
        assert show.show_date == date(2023, 8, 15)
        assert show.year == "2023"

    def test_single_object_sets_and_songs(self) -> None:
        raw = {
            "id": "x1",
            "eventDate": "01-01-2020",
            "artist": {"name": "Solo"},
            "sets": {"set": {"song": {"name": "Only Song"}}},
        }
        show = ShowRecord.from_api(raw)
        assert len(show.sets) == 1
        assert [s.name for s in show.sets[0].songs] == ["Only Song"]

    def test_cover_and_tape_flags(self, make_show_payload: Callable[..., dict]) -> None:
        raw = make_show_payload(
            "c1", songs=("Intro", "Heroes"), covers={"Heroes": "David Bowie"}, tape=("Intro",)
        )
        songs = ShowRecord.from_api(raw).sets[0].songs
        assert songs[0].tape is True
        assert songs[1].cover == "David Bowie"

    def test_placeholder_when_no_tour(self, make_show: Callable[..., ShowRecord]) -> None:
        show = make_show("s1", tour=None)
        assert show.tour_name is None
        assert show.tour_or_placeholder == NO_TOUR_INFO

    def test_has_songs(self, make_show: Callable[..., ShowRecord]) -> None:
        assert make_show("s1").has_songs is True
        assert make_show("s2", songs=()).has_songs is False

    def test_invalid_date(self, make_show: Callable[..., ShowRecord]) -> None:
        show = make_show("s1", event_date="2023-08-15")
        assert show.show_date is None

    def test_parse_event_date(self) -> None:
        assert parse_event_date("29-02-2024") == date(2024, 2, 29)
        assert parse_event_date("31-02-2024") is None
        assert parse_event_date(None) is None

    def test_frozen(self, make_show: Callable[..., ShowRecord]) -> None:
        show = make_show("s1")
        with pytest.raises(ValidationError):
            show.artist_name = "Other"  # type: ignore[misc]


# ======================================================================
# SetlistPage
# ======================================================================


class TestSetlistPage:
    def test_from_api(
        self, make_show_payload: Callable[..., dict], make_page_payload: Callable[..., dict]
    ) -> None:
        payload = make_page_payload(
            [make_show_payload("a"), make_show_payload("b")], total=45, page=2
        )
        page = SetlistPage.from_api(payload)

        assert page.total == 45
        assert page.items_per_page == 20
        assert page.page == 2
        assert [s.id for s in page.shows] == ["a", "b"]
        assert page.total_pages == 3

    @pytest.mark.parametrize(
        "payload",
        [
            {"itemsPerPage": 20, "setlist": []},
            {"total": 10, "setlist": []},
            {"total": "10", "itemsPerPage": 20, "setlist": []},
            {"total": True, "itemsPerPage": 20, "setlist": []},
            ["not", "a", "dict"],
        ],
    )
    def test_missing_or_malformed_counts(self, payload: Any) -> None:
        with pytest.raises(InvalidQueryError):
            SetlistPage.from_api(payload)

    def test_missing_setlist_with_nonzero_total(self) -> None:
        with pytest.raises(InvalidQueryError):
            SetlistPage.from_api({"total": 5, "itemsPerPage": 20})

    def test_missing_setlist_with_zero_total(self) -> None:
        page = SetlistPage.from_api({"total": 0, "itemsPerPage": 20})
        assert page.shows == []
        assert page.total_pages == 0

    def test_page_falls_back_to_requested(self) -> None:
        page = SetlistPage.from_api({"total": 0, "itemsPerPage": 20, "setlist": []}, page=4)
        assert page.page == 4

    @pytest.mark.parametrize(
        "overrides",
        [
            {"total": -5},
            {"setlist": [{"id": "x", "eventDate": "01-02-2024", "venue": {"name": 12345}}]},
        ],
    )
    def test_invalid_fields_become_invalid_query(
        self, make_show_payload: Callable[..., dict], overrides: dict[str, Any]
    ) -> None:
        payload = {"total": 1, "itemsPerPage": 20, "setlist": [make_show_payload("a")]}
        payload.update(overrides)

        with pytest.raises(InvalidQueryError, match="Malformed setlist response on page 3") as exc:
            SetlistPage.from_api(payload, page=3)
        assert exc.value.status_code == 400
        assert isinstance(exc.value.__cause__, ValidationError)


# ======================================================================
# Tour models
# ======================================================================


class TestTourModels:
    def test_tour_group_max_year(self) -> None:
        group = TourGroup(artist="A", tour="T", count=3, years=["2019", "2023", "2021"])
        assert group.max_year == 2023
        assert TourGroup(artist="A", tour="T").max_year == 0

    def test_tour_summary_accepts_camel_case(self) -> None:
        tour = TourSummary.model_validate({"name": "Eras Tour", "showCount": 149, "id": 12})
        assert tour.show_count == 149
        assert tour.id == "12"

    def test_cached_tour_set_round_trips_camel_case(self) -> None:
        entry = CachedTourSet(
            tours=[TourSummary(name="Eras Tour", show_count=149)],
            last_updated="2024-01-01T00:00:00+00:00",
            last_checked=1000,
            cached_at=500,
        )
        dumped = entry.model_dump(mode="json", by_alias=True)
        assert dumped["lastChecked"] == 1000
        assert dumped["tours"][0]["showCount"] == 149
        assert CachedTourSet.model_validate(dumped) == entry


# ======================================================================
# Tally
# ======================================================================


class TestSongTally:
    def test_play_likelihood(self) -> None:
        entry = SongTallyEntry(song="Yellow", artist="Coldplay", count=3)
        tally = SongTally(songs=[entry], total_shows_with_data=4)
        assert tally.play_likelihood(entry) == 75.0
        assert entry.key == "Coldplay|Yellow"

    def test_play_likelihood_without_data(self) -> None:
        entry = SongTallyEntry(song="Yellow", artist="Coldplay", count=1)
        assert SongTally(songs=[entry]).play_likelihood(entry) == 0.0


# ======================================================================
# Progress events
# ======================================================================


class TestProgressEvents:
    def test_connection_event_uses_client_id_key(self) -> None:
        payload = ConnectionEvent(client_id="7").to_payload()
        assert payload == {
            "type": "connection",
            "message": "Connected to server events",
            "clientId": "7",
        }

    def test_update_event_omits_unset_fields(self) -> None:
        payload = UpdateEvent(stage="start", message="Starting").to_payload()
        assert payload["type"] == "update"
        assert "progress" not in payload
        assert "data" not in payload
        assert payload["timestamp"].endswith("Z")

    def test_update_progress_bounds(self) -> None:
        with pytest.raises(ValidationError):
            UpdateEvent(stage="start", message="x", progress=120)

    def test_error_event_status_code_key(self) -> None:
        payload = ErrorEvent(message="boom", status_code=504).to_payload()
        assert payload["statusCode"] == 504

    def test_to_sse_frame(self) -> None:
        frame = CompleteEvent(data={"songs": []}).to_sse()
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        body = json.loads(frame[len("data: ") :].strip())
        assert body["type"] == "complete"
        assert body["data"] == {"songs": []}
