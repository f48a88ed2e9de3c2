"""Progress-stream event models.

Each event serialises to one server-sent-events frame::

    data: {"type": "update", "stage": "setlist_fetch", ...}\\n\\n

Keys on the wire are camelCase (``clientId``, ``statusCode``) to match
what browser clients already consume.  Optional fields that are unset
are omitted from the payload rather than sent as ``null``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat().replace("+00:00", "Z")


class PipelineStage(str, Enum):
    """Stage tags carried by ``update`` events, in execution order."""

    START = "start"
    MUSICBRAINZ = "musicbrainz"
    SETLIST_SEARCH = "setlist_search"
    TOUR_PROCESSING = "tour_processing"
    SETLIST_FETCH = "setlist_fetch"
    SONG_PROCESSING = "song_processing"
    COMPLETE = "complete"


class _BaseEvent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_sse(self) -> str:
        """Render the event as one ``data: <json>`` frame plus blank line."""
        return f"data: {json.dumps(self.to_payload())}\n\n"


class ConnectionEvent(_BaseEvent):
    type: Literal["connection"] = "connection"
    message: str = "Connected to server events"
    client_id: str = Field(alias="clientId")


class UpdateEvent(_BaseEvent):
    type: Literal["update"] = "update"
    stage: str
    message: str
    timestamp: str = Field(default_factory=_now_iso)
    progress: float | None = Field(default=None, ge=0, le=100)
    data: dict[str, Any] | None = None


class CompleteEvent(_BaseEvent):
    type: Literal["complete"] = "complete"
    message: str = "Process completed"
    timestamp: str = Field(default_factory=_now_iso)
    data: dict[str, Any] = Field(default_factory=dict)


class ErrorEvent(_BaseEvent):
    type: Literal["error"] = "error"
    message: str
    status_code: int = Field(default=500, alias="statusCode")
    timestamp: str = Field(default_factory=_now_iso)


ProgressEvent = Annotated[
    Union[ConnectionEvent, UpdateEvent, CompleteEvent, ErrorEvent],
    Field(discriminator="type"),
]

TERMINAL_EVENT_TYPES = frozenset({"complete", "error"})
