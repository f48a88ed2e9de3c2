"""FastAPI routes for SetlistScout.

Service dependencies are resolved from ``app.state`` (populated in
``main._build_all``) via ``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                   Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/events/connect                     GET     Open a progress stream (SSE)
# /api/v1/setlists/search_with_updates       POST    Start a search, report on stream
# /api/v1/setlists                           POST    Run a search and wait for it
# /api/v1/artists/{artist_name}/tours        GET     Complete tour list (cached)
# /api/v1/health                             GET     Health check
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from setlistscout.api.schemas import (
    AcceptedResponse,
    ErrorResponse,
    HealthResponse,
    SearchRequest,
    SearchWithUpdatesRequest,
)
from setlistscout.models.result import SetlistSearchResult
from setlistscout.models.tour import ArtistToursResult
from setlistscout.pipeline.orchestrator import SetlistPipeline
from setlistscout.pipeline.progress_broker import ProgressBroker
from setlistscout.services.tour_catalog import TourCatalogService
from setlistscout.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_pipeline(request: Request) -> SetlistPipeline:
    return request.app.state.pipeline


def _get_broker(request: Request) -> ProgressBroker:
    return request.app.state.broker


def _get_tour_catalog(request: Request) -> TourCatalogService:
    return request.app.state.tour_catalog


PipelineDep = Annotated[SetlistPipeline, Depends(_get_pipeline)]
BrokerDep = Annotated[ProgressBroker, Depends(_get_broker)]
TourCatalogDep = Annotated[TourCatalogService, Depends(_get_tour_catalog)]


# ---------------------------------------------------------------------------
# Progress stream
# ---------------------------------------------------------------------------


@router.get("/events/connect", summary="Open a progress event stream")
async def connect_events(broker: BrokerDep) -> StreamingResponse:
    """Open a channel and stream its events; the first carries the client id.

    The channel is opened on the first read, so a client that disconnects
    before streaming starts never leaves one behind.
    """

    async def event_generator() -> AsyncIterator[str]:
        channel_id = broker.open_channel()
        try:
            async for frame in broker.stream(channel_id):
                yield frame
        finally:
            # Runs on normal completion and when the client disconnects.
            broker.close_channel(channel_id)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


# ---------------------------------------------------------------------------
# Setlist search
# ---------------------------------------------------------------------------


@router.post(
    "/setlists/search_with_updates",
    status_code=202,
    response_model=AcceptedResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Start a setlist search that reports progress on a stream",
)
async def search_with_updates(
    body: SearchWithUpdatesRequest,
    background_tasks: BackgroundTasks,
    pipeline: PipelineDep,
    broker: BrokerDep,
) -> AcceptedResponse:
    if not body.client_id:
        raise HTTPException(status_code=400, detail="Missing clientId parameter")
    if not broker.has_channel(body.client_id):
        raise HTTPException(status_code=404, detail=f"Unknown clientId: {body.client_id}")

    _logger.info("search_accepted", artist=body.artist.name, client_id=body.client_id)
    background_tasks.add_task(pipeline.run_with_updates, body.artist, body.client_id)
    return AcceptedResponse(client_id=body.client_id)


@router.post(
    "/setlists",
    response_model=SetlistSearchResult,
    responses={404: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
    summary="Run a setlist search and return the ranked songs",
)
async def search_setlists(body: SearchRequest, pipeline: PipelineDep) -> SetlistSearchResult:
    return await pipeline.run(body.artist)


# ---------------------------------------------------------------------------
# Tours
# ---------------------------------------------------------------------------


@router.get(
    "/artists/{artist_name}/tours",
    response_model=ArtistToursResult,
    summary="List every tour an artist has played",
)
async def artist_tours(
    artist_name: str,
    tour_catalog: TourCatalogDep,
    mbid: Annotated[str | None, Query()] = None,
) -> ArtistToursResult:
    return await tour_catalog.get_artist_tours(artist_name, mbid)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    broker: ProgressBroker | None = getattr(request.app.state, "broker", None)
    if broker is not None:
        providers["open_channels"] = broker.open_channels

    status = "healthy" if providers.get("setlistfm", False) else "degraded"
    return HealthResponse(
        status=status,
        version=getattr(request.app.state, "version", "0.1.0"),
        providers=providers,
    )
