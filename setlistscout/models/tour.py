"""Tour grouping and tour-cache models.

``TourGroup`` is the transient grouping used to pick the current tour.
``TourSummary`` and ``CachedTourSet`` are what the tour cache persists;
both accept camelCase input (the tour scraper and older cache blobs use
``showCount``, ``firstDate`` ...) as well as snake_case.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TourGroup(BaseModel):
    """Shows of one artist grouped under one tour name (or the placeholder)."""

    model_config = ConfigDict(frozen=True)

    artist: str
    tour: str
    count: int = Field(default=0, ge=0, description="Shows in this group.")
    years: list[str] = Field(default_factory=list, description="Distinct years, ascending.")

    @property
    def max_year(self) -> int:
        numeric = [int(y) for y in self.years if y.isdigit()]
        return max(numeric) if numeric else 0


class TourSummary(BaseModel):
    """One tour as stored in the tour cache."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    name: str
    id: str | None = None
    show_count: int | None = None
    first_date: str | None = Field(default=None, description="dd-mm-yyyy of the earliest show.")
    last_date: str | None = Field(default=None, description="dd-mm-yyyy of the latest show.")
    first_year: int | None = None
    last_year: int | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class CachedTourSet(BaseModel):
    """Persisted tour list for one catalog artist slug."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    tours: list[TourSummary] = Field(default_factory=list)
    last_updated: str = Field(description="ISO-8601 time the tour list was last written.")
    last_checked: int = Field(description="Epoch milliseconds of the last upstream check.")
    cached_at: int = Field(description="Epoch milliseconds the entry was first written.")
    original_count: int = Field(default=0, description="Tours offered before filtering.")
    filtered_count: int = Field(default=0, description="Tours kept after filtering.")


class ArtistToursResult(BaseModel):
    """Answer to "which tours has this artist played?"."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    tours: list[TourSummary] = Field(default_factory=list)
    artist_slug: str | None = None
    cached: bool = False
    cache_age_minutes: int | None = Field(
        default=None, description="Minutes since the cached list was first written."
    )
    message: str | None = None
