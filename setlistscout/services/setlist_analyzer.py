"""Setlist data-quality analysis and workflow selection.

# ─── DECISION TREE ────────────────────────────────────────────────────
#
#   shows with songs < 5                          → AGGREGATE_ALL (60)
#   tour age < 6 months, tour shows ≥ 10          → CURRENT_TOUR
#   tour age < 6 months, 3 ≤ tour shows < 10      → CURRENT_TOUR + warning
#   tour age > 12 months, ≥ 5 recent untoured     → RECENT_SHOWS
#   tour age > 12 months, < 5 recent untoured     → OLD_TOUR + warning
#   anything else                                 → AGGREGATE_RECENT (40)
#
# Tour age is measured in 30.44-day months from the most recent show of
# the most recent tour.  Rules that mention tour age only apply when the
# artist has at least one dated, named tour.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import calendar
import functools
import math
from collections.abc import Sequence
from datetime import date

from setlistscout.models.setlist import NO_TOUR_INFO, ShowRecord
from setlistscout.models.workflow import (
    SetlistAnalysis,
    TourStats,
    WorkflowDecision,
    WorkflowType,
)
from setlistscout.utils.logging import get_logger

_logger = get_logger(__name__)

AVERAGE_MONTH_DAYS = 30.44
AGGREGATE_ALL_SHOW_COUNT = 60
AGGREGATE_RECENT_SHOW_COUNT = 40

MIN_SHOWS_WITH_SONGS = 5
CURRENT_TOUR_MAX_AGE = 6
OLD_TOUR_MIN_AGE = 12
GOOD_TOUR_DATA = 10
LIMITED_TOUR_DATA = 3
MIN_RECENT_NON_TOUR = 5
RECENT_NON_TOUR_MONTHS = 12
RECENT_WITH_SONGS_MONTHS = 24


def subtract_months(day: date, months: int) -> date:
    """Calendar-month subtraction, clamping to the target month's last day."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _compare_tours(a: TourStats, b: TourStats) -> int:
    # Dated tours sort newest first; otherwise richer data first.
    if a.most_recent_date and b.most_recent_date:
        return (b.most_recent_date - a.most_recent_date).days
    return b.shows_with_songs - a.shows_with_songs


class SetlistAnalyzer:
    """Computes :class:`SetlistAnalysis` for a show history and picks a workflow.

    Parameters
    ----------
    shows:
        Shows newest first, as returned by the show-history search.
    today:
        Reference date for recency rules; defaults to ``date.today()``.
    """

    def __init__(self, shows: Sequence[ShowRecord] | None, today: date | None = None) -> None:
        self._shows = list(shows or [])
        self._today = today or date.today()
        self.analysis = self._analyze()

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def _analyze(self) -> SetlistAnalysis:
        if not self._shows:
            return SetlistAnalysis()

        with_songs = [show for show in self._shows if show.has_songs]
        tours = self.extract_tours()
        most_recent = self.most_recent_tour(tours)

        _logger.info(
            "setlist_analysis",
            total_shows=len(self._shows),
            shows_with_songs=len(with_songs),
            tours=len(tours),
            most_recent_tour=most_recent.name if most_recent else None,
        )

        return SetlistAnalysis(
            total_shows=len(self._shows),
            shows_with_songs=len(with_songs),
            most_recent_tour=most_recent,
            tour_age=self.tour_age(most_recent),
            tour_shows_with_songs=most_recent.shows_with_songs if most_recent else 0,
            recent_non_tour_shows=[
                show
                for show in with_songs
                if self.is_within_months(show, RECENT_NON_TOUR_MONTHS)
                and (not show.tour_name or show.tour_name == NO_TOUR_INFO)
            ],
            recent_shows_with_songs=sum(
                1 for show in with_songs if self.is_within_months(show, RECENT_WITH_SONGS_MONTHS)
            ),
            tours=tours,
            oldest_show_date=self._shows[-1].event_date or None,
            newest_show_date=self._shows[0].event_date or None,
        )

    def extract_tours(self) -> list[TourStats]:
        """Per-tour metrics for every named tour, most recent first."""
        order: list[str] = []
        counts: dict[str, int] = {}
        with_songs: dict[str, int] = {}
        years: dict[str, set[str]] = {}
        latest: dict[str, date | None] = {}

        for show in self._shows:
            name = show.tour_name
            if not name or name == NO_TOUR_INFO:
                continue
            if name not in counts:
                order.append(name)
                counts[name] = 0
                with_songs[name] = 0
                years[name] = set()
                latest[name] = None

            counts[name] += 1
            if show.has_songs:
                with_songs[name] += 1
            show_date = show.show_date
            if show_date is not None:
                if latest[name] is None or show_date > latest[name]:
                    latest[name] = show_date
                years[name].add(str(show_date.year))

        tours = [
            TourStats(
                name=name,
                show_count=counts[name],
                shows_with_songs=with_songs[name],
                years=sorted(years[name]),
                most_recent_date=latest[name],
            )
            for name in order
        ]
        return sorted(tours, key=functools.cmp_to_key(_compare_tours))

    @staticmethod
    def most_recent_tour(tours: Sequence[TourStats]) -> TourStats | None:
        if not tours:
            return None
        return next((tour for tour in tours if tour.shows_with_songs > 0), tours[0])

    def tour_age(self, tour: TourStats | None) -> int | None:
        """Whole months since *tour* last played, or ``None`` if undated."""
        if tour is None or tour.most_recent_date is None:
            return None
        days = (self._today - tour.most_recent_date).days
        # Half-months round up.
        return math.floor(days / AVERAGE_MONTH_DAYS + 0.5)

    def is_within_months(self, show: ShowRecord, months: int) -> bool:
        show_date = show.show_date
        if show_date is None:
            return False
        return show_date >= subtract_months(self._today, months)

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def determine_workflow(self) -> WorkflowDecision:
        """Apply the decision tree to :attr:`analysis`; first matching rule wins."""
        a = self.analysis
        age = a.tour_age
        tour_shows = a.tour_shows_with_songs
        recent = a.recent_non_tour_shows

        if a.shows_with_songs < MIN_SHOWS_WITH_SONGS:
            return WorkflowDecision(
                workflow=WorkflowType.AGGREGATE_ALL,
                show_count=AGGREGATE_ALL_SHOW_COUNT,
                message=(
                    "Limited setlist data available for this artist. We'll gather all "
                    "available shows to build the best playlist possible."
                ),
                data_quality_warning="Based on limited available data",
            )

        if age is not None and age < CURRENT_TOUR_MAX_AGE:
            if tour_shows >= GOOD_TOUR_DATA:
                return WorkflowDecision(workflow=WorkflowType.CURRENT_TOUR, tour=a.most_recent_tour)
            if tour_shows >= LIMITED_TOUR_DATA:
                return WorkflowDecision(
                    workflow=WorkflowType.CURRENT_TOUR,
                    tour=a.most_recent_tour,
                    data_quality_warning=(
                        f"Early tour data ({tour_shows} shows) - setlists may evolve "
                        "as tour progresses"
                    ),
                )

        if age is not None and age > OLD_TOUR_MIN_AGE:
            tour_years = age // 12
            if len(recent) >= MIN_RECENT_NON_TOUR:
                return WorkflowDecision(
                    workflow=WorkflowType.RECENT_SHOWS,
                    shows=recent,
                    message=f"Using recent performances instead of {tour_years}-year-old tour data",
                    data_quality_warning=(
                        f"Based on recent individual shows ({len(recent)} shows)"
                    ),
                )
            plural = "" if tour_years == 1 else "s"
            return WorkflowDecision(
                workflow=WorkflowType.OLD_TOUR,
                tour=a.most_recent_tour,
                data_quality_warning=(
                    f"This tour ended {tour_years} year{plural} ago - songs may differ "
                    "from current setlists"
                ),
            )

        return WorkflowDecision(
            workflow=WorkflowType.AGGREGATE_RECENT,
            show_count=AGGREGATE_RECENT_SHOW_COUNT,
            data_quality_warning="Based on recent performances",
        )


def analyze_and_determine_workflow(
    shows: Sequence[ShowRecord] | None, today: date | None = None
) -> tuple[SetlistAnalysis, WorkflowDecision]:
    """Analyze *shows* and return ``(analysis, decision)``."""
    analyzer = SetlistAnalyzer(shows, today=today)
    return analyzer.analysis, analyzer.determine_workflow()
