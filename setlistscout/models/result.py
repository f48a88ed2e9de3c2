"""Pipeline request and result models.

These are the payloads that cross the HTTP boundary: the ``complete``
event's ``data`` and the synchronous search response.  Keys are
camelCase on the wire (``tourData``, ``bandName``, ``totalShows``).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from setlistscout.models.workflow import WorkflowType


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class ArtistRequest(_CamelModel):
    """The artist as picked by the user in a streaming-service search."""

    name: str = Field(min_length=1, description="Display name from the streaming service.")
    url: str | None = Field(
        default=None,
        description="Streaming-service artist URL; enables the MusicBrainz lookup.",
    )


class TourData(_CamelModel):
    band_name: str
    tour_name: str
    total_shows: int = Field(description="Shows that contributed set data.")


class RankedSong(_CamelModel):
    song: str
    artist: str
    count: int
    likelihood: float = Field(description="Percent of shows with data that included the song.")


class SetlistSearchResult(_CamelModel):
    """Everything a client needs to build a playlist for one artist."""

    tour_data: TourData
    songs: list[RankedSong] = Field(default_factory=list)
    workflow: WorkflowType
    message: str | None = None
    data_quality_warning: str | None = None
    failed_pages: list[int] = Field(
        default_factory=list, description="Pages that could not be fetched and were skipped."
    )
