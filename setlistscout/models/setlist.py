"""Pydantic v2 models for setlist.fm show-history data.

All models are frozen (immutable).  They mirror the shape returned by
``GET /rest/1.0/search/setlists`` but in a flat, snake_case form, and are
built through ``from_api`` classmethods that validate the fields the
pipeline depends on before any of them is used.

Upstream quirks handled here:

- ``sets.set`` and ``set[].song`` are usually arrays but occasionally a
  single object; both are accepted.
- ``eventDate`` is ``dd-mm-yyyy``; it is kept verbatim and parsed lazily.
- ``total`` / ``itemsPerPage`` missing or non-numeric, or any show field
  of the wrong type, raises :class:`~setlistscout.utils.errors.InvalidQueryError`.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from setlistscout.utils.errors import InvalidQueryError

NO_TOUR_INFO = "No Tour Info"


def _as_list(value: Any) -> list:
    """Wrap a single JSON object in a list; ``None`` becomes ``[]``."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def parse_event_date(value: str | None) -> date | None:
    """Parse a setlist.fm ``dd-mm-yyyy`` date, returning ``None`` if invalid."""
    if not value:
        return None
    try:
        return datetime.strptime(value, "%d-%m-%Y").date()
    except ValueError:
        return None


class SongEntry(BaseModel):
    """One song inside a set section."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", description="Song title as listed on setlist.fm.")
    cover: str | None = Field(
        default=None,
        description="Original artist when the song was performed as a cover.",
    )
    tape: bool = Field(
        default=False,
        description="Played from tape before the show; never tallied.",
    )

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> SongEntry:
        cover = raw.get("cover") or {}
        return cls(
            name=raw.get("name") or "",
            cover=cover.get("name") if isinstance(cover, dict) else None,
            tape=bool(raw.get("tape", False)),
        )


class SetSection(BaseModel):
    """A named portion of a show, e.g. the main set or an encore."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, description="Section label, if any.")
    encore: int | None = Field(default=None, description="Encore number, if an encore.")
    songs: list[SongEntry] = Field(default_factory=list, description="Songs in play order.")

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> SetSection:
        encore = raw.get("encore")
        return cls(
            name=raw.get("name"),
            encore=encore if isinstance(encore, int) else None,
            songs=[SongEntry.from_api(s) for s in _as_list(raw.get("song")) if isinstance(s, dict)],
        )


class ShowRecord(BaseModel):
    """One recorded live performance."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="setlist.fm setlist id.")
    event_date: str = Field(default="", description="Event date as dd-mm-yyyy.")
    venue_name: str = Field(default="", description="Venue name.")
    city: str = Field(default="", description="City name.")
    country: str = Field(default="", description="Country name.")
    artist_name: str = Field(default="", description="Performing artist.")
    artist_mbid: str | None = Field(default=None, description="Performing artist MBID.")
    artist_url: str | None = Field(
        default=None,
        description="setlist.fm artist page (/setlists/<slug>.html).",
    )
    tour_name: str | None = Field(default=None, description="Tour label, if the show has one.")
    sets: list[SetSection] = Field(default_factory=list, description="Set sections in order.")

    @property
    def show_date(self) -> date | None:
        return parse_event_date(self.event_date)

    @property
    def year(self) -> str | None:
        parts = self.event_date.split("-")
        return parts[2] if len(parts) == 3 and parts[2] else None

    @property
    def tour_or_placeholder(self) -> str:
        return self.tour_name or NO_TOUR_INFO

    @property
    def has_songs(self) -> bool:
        """True when at least one set section lists at least one song."""
        return any(section.songs for section in self.sets)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> ShowRecord:
        """Build a show from one element of the ``setlist`` array."""
        artist = raw.get("artist") or {}
        venue = raw.get("venue") or {}
        city = venue.get("city") or {}
        country = city.get("country") or {}
        tour = raw.get("tour") or {}
        sets = (raw.get("sets") or {}).get("set") if isinstance(raw.get("sets"), dict) else None

        return cls(
            id=str(raw.get("id", "")),
            event_date=raw.get("eventDate") or "",
            venue_name=venue.get("name") or "",
            city=city.get("name") or "",
            country=country.get("name") or "",
            artist_name=artist.get("name") or "",
            artist_mbid=artist.get("mbid"),
            artist_url=artist.get("url"),
            tour_name=tour.get("name") or None,
            sets=[SetSection.from_api(s) for s in _as_list(sets) if isinstance(s, dict)],
        )


class SetlistPage(BaseModel):
    """One page of ``search/setlists`` results."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(ge=0, description="Total matching shows across all pages.")
    items_per_page: int = Field(ge=0, description="Page size used by the upstream.")
    page: int = Field(default=1, ge=1, description="1-based page number.")
    shows: list[ShowRecord] = Field(default_factory=list, description="Shows on this page.")

    @property
    def total_pages(self) -> int:
        if self.items_per_page <= 0:
            return 1 if self.shows else 0
        return math.ceil(self.total / self.items_per_page)

    @classmethod
    def from_api(cls, payload: Any, page: int = 1) -> SetlistPage:
        """Validate and convert a raw JSON page.

        Raises
        ------
        InvalidQueryError
            If ``total`` or ``itemsPerPage`` is missing or not an integer,
            if ``setlist`` is missing while ``total`` is non-zero, or if any
            show in it does not validate.
        """
        if not isinstance(payload, dict):
            raise InvalidQueryError("Malformed setlist response", provider_name="setlistfm")

        total = payload.get("total")
        items_per_page = payload.get("itemsPerPage")
        for field, value in (("total", total), ("itemsPerPage", items_per_page)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidQueryError(
                    f"Setlist response is missing a valid '{field}' field",
                    provider_name="setlistfm",
                )

        raw_shows = payload.get("setlist")
        if raw_shows is None and total > 0:
            raise InvalidQueryError(
                "Setlist response is missing the 'setlist' field",
                provider_name="setlistfm",
            )

        try:
            return cls(
                total=total,
                items_per_page=items_per_page,
                page=payload.get("page") or page,
                shows=[ShowRecord.from_api(s) for s in _as_list(raw_shows) if isinstance(s, dict)],
            )
        except (ValidationError, TypeError, AttributeError) as exc:
            raise InvalidQueryError(
                f"Malformed setlist response on page {page}: {exc}",
                provider_name="setlistfm",
            ) from exc
