"""Workflow decision models.

The analyzer inspects a body of shows (``SetlistAnalysis``) and picks one
of five aggregation strategies (``WorkflowDecision``).
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from setlistscout.models.setlist import ShowRecord


class WorkflowType(str, Enum):
    """Aggregation strategies, in the order the decision tree considers them."""

    AGGREGATE_ALL = "AGGREGATE_ALL"
    CURRENT_TOUR = "CURRENT_TOUR"
    RECENT_SHOWS = "RECENT_SHOWS"
    OLD_TOUR = "OLD_TOUR"
    AGGREGATE_RECENT = "AGGREGATE_RECENT"


class TourStats(BaseModel):
    """Per-tour metrics extracted from a show history."""

    model_config = ConfigDict(frozen=True)

    name: str
    show_count: int = 0
    shows_with_songs: int = 0
    years: list[str] = Field(default_factory=list)
    most_recent_date: date | None = None


class SetlistAnalysis(BaseModel):
    """Data-quality metrics computed from the full show history."""

    model_config = ConfigDict(frozen=True)

    total_shows: int = 0
    shows_with_songs: int = 0
    most_recent_tour: TourStats | None = None
    tour_age: int | None = Field(
        default=None, description="Months since the most recent tour's last show."
    )
    tour_shows_with_songs: int = 0
    recent_non_tour_shows: list[ShowRecord] = Field(
        default_factory=list,
        description="Shows with songs, in the last 12 months, without a tour label.",
    )
    recent_shows_with_songs: int = Field(
        default=0, description="Shows with songs in the last 24 months."
    )
    tours: list[TourStats] = Field(default_factory=list)
    oldest_show_date: str | None = None
    newest_show_date: str | None = None


class WorkflowDecision(BaseModel):
    """The chosen strategy plus its parameters."""

    model_config = ConfigDict(frozen=True)

    workflow: WorkflowType
    tour: TourStats | None = None
    shows: list[ShowRecord] | None = None
    show_count: int | None = None
    message: str | None = None
    data_quality_warning: str | None = None
