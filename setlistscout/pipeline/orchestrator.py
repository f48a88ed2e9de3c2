"""Setlist search pipeline: artist in, ranked song list out.

Stages, each announced on the progress channel before it runs::

    start (5) → musicbrainz (15) → setlist_search (30)
      → tour_processing (45) → setlist_fetch (55) → song_processing (70)
      → complete

The run is a single producer for its channel.  Every upstream failure
becomes exactly one ``error`` event (or, without a channel, an exception
for the caller); no placeholder songs are ever produced.  A cancelled run
emits nothing further once cancellation is observed.

Strategy selection: ``choose_tour`` names the canonical current tour from
page 1, and the workflow analyzer looks at the most recent pages to decide
whether that tour is worth paginating (CURRENT_TOUR / OLD_TOUR) or whether
recent individual shows make a better basis (RECENT_SHOWS /
AGGREGATE_RECENT / AGGREGATE_ALL).
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from setlistscout.interfaces.music_db_provider import ArtistIdentity, IMusicDatabaseProvider
from setlistscout.interfaces.setlist_provider import ArtistQuery
from setlistscout.models.progress import PipelineStage
from setlistscout.models.result import ArtistRequest, RankedSong, SetlistSearchResult, TourData
from setlistscout.models.setlist import NO_TOUR_INFO, SetlistPage, ShowRecord
from setlistscout.models.tally import SongTally
from setlistscout.models.workflow import WorkflowDecision, WorkflowType
from setlistscout.utils.concurrency import CancellationToken
from setlistscout.pipeline.progress_broker import ProgressBroker
from setlistscout.services.setlist_analyzer import analyze_and_determine_workflow
from setlistscout.services.setlist_paginator import PaginationError, SetlistPaginator
from setlistscout.services.slug_resolver import extract_slug_from_url, find_best_artist_match
from setlistscout.services.song_tally import tally_shows
from setlistscout.services.tour_catalog import TourCatalogService
from setlistscout.services.tour_selector import choose_tour, group_shows_by_tour
from setlistscout.utils.errors import (
    NoDataFoundError,
    PipelineCancelledError,
    SetlistScoutError,
    UpstreamUnavailableError,
)
from setlistscout.utils.logging import get_logger
from setlistscout.utils.text_normalizer import is_artist_name_match

NO_SETLIST_INFO_MESSAGE = "This artist doesn't have any setlist information"
UNAVAILABLE_MESSAGE = "Setlist.fm service is currently unavailable. Please try again later."
INTERNAL_ERROR_MESSAGE = "Internal Server Error. Please try again later."

_TOUR_WORKFLOWS = frozenset({WorkflowType.CURRENT_TOUR, WorkflowType.OLD_TOUR})


class SetlistPipeline:
    """Runs one artist search end to end.

    All collaborators are injected; the pipeline owns no global state.

    Parameters
    ----------
    music_db:
        Identity lookup (MusicBrainz).  ``None`` skips straight to a
        name search.
    paginator:
        Show-history paginator on the interactive fetcher.
    broker:
        Progress channels.
    tour_catalog:
        Used for the post-completion cache refresh; optional.
    recent_pages:
        Leading pages the workflow analyzer inspects.
    """

    def __init__(
        self,
        music_db: IMusicDatabaseProvider | None,
        paginator: SetlistPaginator,
        broker: ProgressBroker,
        tour_catalog: TourCatalogService | None = None,
        recent_pages: int = 3,
    ) -> None:
        self._music_db = music_db
        self._paginator = paginator
        self._broker = broker
        self._tour_catalog = tour_catalog
        self._recent_pages = recent_pages
        self._background: set[asyncio.Task] = set()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run_with_updates(self, artist: ArtistRequest, channel_id: str) -> None:
        """Run for a progress channel; the outcome is reported on the channel only."""
        token = self._broker.get_cancel_token(channel_id)
        if token is None:
            self._logger.warning("pipeline_channel_missing", channel_id=channel_id)
            return

        try:
            result = await self.run(artist, channel_id=channel_id, cancel_token=token)
        except PipelineCancelledError:
            self._logger.info("pipeline_cancelled", artist=artist.name, channel_id=channel_id)
            return
        except SetlistScoutError as exc:
            await self._broker.send_error(channel_id, *self._describe_error(exc))
            return
        except Exception as exc:  # noqa: BLE001
            self._logger.error(
                "pipeline_unexpected_error", artist=artist.name, error=str(exc), exc_info=True
            )
            await self._broker.send_error(channel_id, INTERNAL_ERROR_MESSAGE, 500)
            return

        if token.cancelled:
            return
        await self._broker.complete(channel_id, result.model_dump(mode="json", by_alias=True))

    async def run(
        self,
        artist: ArtistRequest,
        channel_id: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> SetlistSearchResult:
        """Run the search and return the result.

        Raises
        ------
        SetlistScoutError
            Any upstream or data failure, already mapped to a status code.
        PipelineCancelledError
            When *cancel_token* is signalled.
        """
        token = cancel_token or CancellationToken()

        await self._stage(
            channel_id, token, PipelineStage.START, f"Starting search for {artist.name}", 5
        )

        await self._stage(
            channel_id,
            token,
            PipelineStage.MUSICBRAINZ,
            "Contacting MusicBrainz for artist identification",
            15,
        )
        identity = await self._lookup_identity(artist)

        if identity is not None and is_artist_name_match(artist.name, identity.name):
            query = ArtistQuery(artist.name, identity.mbid)
            search_message = (
                f"Found exact match for {artist.name} on MusicBrainz, getting setlist data"
            )
        else:
            query = ArtistQuery(artist.name)
            search_message = f"Searching Setlist.fm for {artist.name}"
        await self._stage(channel_id, token, PipelineStage.SETLIST_SEARCH, search_message, 30)

        try:
            first_page = await self._paginator.fetch_first_page(query, cancel_token=token)
        except NoDataFoundError as exc:
            raise NoDataFoundError(
                NO_SETLIST_INFO_MESSAGE, provider_name=exc.provider_name, details=exc.details
            ) from exc

        await self._stage(
            channel_id, token, PipelineStage.TOUR_PROCESSING, "Processing tour information", 45
        )
        tour_name = choose_tour(group_shows_by_tour(first_page.shows), artist.name)
        if not tour_name:
            raise NoDataFoundError(NO_SETLIST_INFO_MESSAGE)

        recent = await self._paginator.fetch_recent_pages(
            query, page_count=self._recent_pages, cancel_token=token, first_page=first_page
        )
        _, decision = analyze_and_determine_workflow(recent.shows)
        self._logger.info(
            "workflow_selected",
            artist=artist.name,
            chosen_tour=tour_name,
            workflow=decision.workflow.value,
        )

        shows, selected_tour, failed_pages = await self._collect_shows(
            channel_id, token, query, tour_name, decision, first_page, recent.shows
        )

        await self._stage(
            channel_id,
            token,
            PipelineStage.SONG_PROCESSING,
            "Analyzing setlists and counting song frequencies",
            70,
        )
        tally = tally_shows(shows, primary_artist=_primary_artist(shows, artist.name))
        result = self._build_result(artist, selected_tour, tally, decision, failed_pages)

        token.raise_if_cancelled()
        self._logger.info(
            "pipeline_complete",
            artist=artist.name,
            tour=selected_tour,
            songs=len(result.songs),
            shows=tally.total_shows_with_data,
        )
        self._schedule_refresh(artist.name, selected_tour, first_page, query.mbid)
        return result

    async def drain_background(self) -> None:
        """Wait for scheduled cache refreshes (used on shutdown and in tests)."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _stage(
        self,
        channel_id: str | None,
        token: CancellationToken,
        stage: PipelineStage,
        message: str,
        progress: float,
    ) -> None:
        token.raise_if_cancelled()
        self._logger.debug("pipeline_stage", stage=stage.value, progress=progress)
        if channel_id is not None:
            await self._broker.send_update(channel_id, stage, message, progress)

    async def _lookup_identity(self, artist: ArtistRequest) -> ArtistIdentity | None:
        if self._music_db is None or not artist.url:
            return None
        try:
            return await self._music_db.lookup_artist_by_url(artist.url)
        except UpstreamUnavailableError as exc:
            # Identity only sharpens the search; fall back to the name.
            self._logger.warning("identity_lookup_failed", artist=artist.name, error=str(exc))
            return None

    async def _collect_shows(
        self,
        channel_id: str | None,
        token: CancellationToken,
        query: ArtistQuery,
        tour_name: str,
        decision: WorkflowDecision,
        first_page: SetlistPage,
        recent_shows: list[ShowRecord],
    ) -> tuple[list[ShowRecord], str, list[int]]:
        """Fetch the shows the chosen workflow tallies.

        Returns ``(shows, tour label, failed page numbers)``.
        """
        if decision.workflow in _TOUR_WORKFLOWS:
            target = tour_name
            if target == NO_TOUR_INFO and decision.tour is not None:
                target = decision.tour.name

            if target == NO_TOUR_INFO:
                await self._stage(
                    channel_id,
                    token,
                    PipelineStage.SETLIST_FETCH,
                    "No specific tour found, using recent performances",
                    55,
                )
                return list(first_page.shows), NO_TOUR_INFO, []

            await self._stage(
                channel_id,
                token,
                PipelineStage.SETLIST_FETCH,
                f'Fetching setlists for "{target}" tour',
                55,
            )
            result = await self._paginator.fetch_all_shows(
                query, tour_name=target, cancel_token=token
            )
            if isinstance(result, PaginationError):
                raise SetlistScoutError(result.message, status_code=result.status_code)
            return result.shows, target, result.failed_pages

        await self._stage(
            channel_id,
            token,
            PipelineStage.SETLIST_FETCH,
            decision.message or "Using recent performances",
            55,
        )
        if decision.workflow == WorkflowType.RECENT_SHOWS:
            return list(decision.shows or []), tour_name, []
        limit = decision.show_count or len(recent_shows)
        return recent_shows[:limit], tour_name, []

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_result(
        artist: ArtistRequest,
        tour_name: str,
        tally: SongTally,
        decision: WorkflowDecision,
        failed_pages: list[int],
    ) -> SetlistSearchResult:
        return SetlistSearchResult(
            tour_data=TourData(
                band_name=artist.name,
                tour_name=tour_name,
                total_shows=tally.total_shows_with_data,
            ),
            songs=[
                RankedSong(
                    song=entry.song,
                    artist=entry.artist,
                    count=entry.count,
                    likelihood=round(tally.play_likelihood(entry), 1),
                )
                for entry in tally.songs
            ],
            workflow=decision.workflow,
            message=decision.message,
            data_quality_warning=decision.data_quality_warning,
            failed_pages=failed_pages,
        )

    def _describe_error(self, exc: SetlistScoutError) -> tuple[str, int]:
        self._logger.error(
            "pipeline_failed",
            error=str(exc),
            status_code=exc.status_code,
            provider=exc.provider_name,
        )
        if exc.status_code == 504:
            return UNAVAILABLE_MESSAGE, 504
        return exc.message, exc.status_code

    def _schedule_refresh(
        self, artist_name: str, tour_name: str, first_page: SetlistPage, mbid: str | None
    ) -> None:
        if self._tour_catalog is None:
            return
        best = find_best_artist_match(first_page.shows, artist_name)
        slug = extract_slug_from_url(best.artist_url if best else None)
        task = asyncio.create_task(
            self._tour_catalog.refresh_after_live_shows(artist_name, tour_name, slug, mbid)
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)


def _primary_artist(shows: Sequence[ShowRecord], fallback: str) -> str:
    for show in shows:
        if show.artist_name:
            return show.artist_name
    return fallback
