"""Pydantic request/response schemas for the SetlistScout API.

Request bodies keep the camelCase keys browser clients already send
(``clientId``); response bodies reuse the domain models where they are
the contract (:class:`SetlistSearchResult`, :class:`ArtistToursResult`).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from setlistscout.models.result import ArtistRequest


class SearchRequest(BaseModel):
    """Body of ``POST /setlists``."""

    artist: ArtistRequest


class SearchWithUpdatesRequest(BaseModel):
    """Body of ``POST /setlists/search_with_updates``.

    ``clientId`` is optional at the schema level so a missing value is
    reported as a 400 with the expected message rather than a 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    artist: ArtistRequest
    client_id: str | None = Field(default=None, alias="clientId")


class AcceptedResponse(BaseModel):
    """202 body returned once a background search has been scheduled."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = "Request accepted, processing started"
    client_id: str = Field(alias="clientId")


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error body returned by every failing endpoint."""

    error: str
    detail: str | None = None
