"""Per-client progress channels for long-running setlist searches.

# ─── HOW PROGRESS CHANNELS WORK ───────────────────────────────────────
#
#   GET /events/connect ──open_channel()──→ channel "7" (queue + token)
#                                              │
#   pipeline run ──send_update()/complete()──→ queue (FIFO, bounded)
#                                              │
#   SSE response ◀──────────stream("7")────────┘
#
# Lifecycle of a channel:
#   open ──update*──→ complete | error ──→ closed (stream ends)
#   open ──client disconnects──→ close_channel(): token cancelled,
#                                 nothing further is emitted
#
# A single pipeline run is the only producer for its channel, so events
# arrive in the order they were sent.  Writes to an unknown or already
# closed channel are logged and ignored; a late update from a cancelled
# run can never resurrect a channel.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import structlog

from setlistscout.models.progress import (
    CompleteEvent,
    ConnectionEvent,
    ErrorEvent,
    PipelineStage,
    UpdateEvent,
)
from setlistscout.utils.concurrency import CancellationToken
from setlistscout.utils.logging import get_logger

_DEFAULT_QUEUE_SIZE = 100


@dataclass
class _Channel:
    """Internal per-client state; never exposed outside the broker."""

    queue: asyncio.Queue[str | None]
    token: CancellationToken = field(default_factory=CancellationToken)
    finished: bool = False


class ProgressBroker:
    """Registry of open progress channels.

    Constructed once per application and injected wherever progress is
    reported; there is no module-level instance.

    Parameters
    ----------
    queue_size:
        Maximum buffered frames per channel.  A slow reader applies
        back-pressure to its own pipeline run only.
    """

    def __init__(self, queue_size: int = _DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._channels: dict[str, _Channel] = {}
        self._ids = itertools.count(1)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Channel lifecycle
    # ------------------------------------------------------------------

    def open_channel(self) -> str:
        """Create a channel and queue its ``connection`` event; return its id."""
        channel_id = str(next(self._ids))
        channel = _Channel(queue=asyncio.Queue(maxsize=self._queue_size))
        channel.queue.put_nowait(ConnectionEvent(client_id=channel_id).to_sse())
        self._channels[channel_id] = channel
        self._logger.info("channel_opened", channel_id=channel_id)
        return channel_id

    def close_channel(self, channel_id: str) -> None:
        """Client went away: cancel its run and drop the channel silently."""
        channel = self._channels.pop(channel_id, None)
        if channel is None:
            return
        if not channel.finished:
            channel.token.cancel("client disconnected")
        _drain(channel.queue)
        channel.queue.put_nowait(None)
        self._logger.info("channel_closed", channel_id=channel_id)

    def has_channel(self, channel_id: str) -> bool:
        """True while the channel is open and has not emitted a terminal event."""
        channel = self._channels.get(channel_id)
        return channel is not None and not channel.finished

    def get_cancel_token(self, channel_id: str) -> CancellationToken | None:
        channel = self._channels.get(channel_id)
        return channel.token if channel else None

    @property
    def open_channels(self) -> int:
        return sum(1 for channel in self._channels.values() if not channel.finished)

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    async def send_update(
        self,
        channel_id: str,
        stage: PipelineStage | str,
        message: str,
        progress: float | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        channel = self._lookup(channel_id, "update")
        if channel is None:
            return
        stage_value = stage.value if isinstance(stage, PipelineStage) else stage
        event = UpdateEvent(stage=stage_value, message=message, progress=progress, data=data)
        await channel.queue.put(event.to_sse())
        self._logger.debug(
            "progress_update", channel_id=channel_id, stage=stage_value, progress=progress
        )

    async def complete(self, channel_id: str, data: dict[str, Any] | None = None) -> None:
        """Emit the ``complete`` event and close the channel."""
        channel = self._lookup(channel_id, "complete")
        if channel is None:
            return
        await self._finish(channel, CompleteEvent(data=data or {}).to_sse())
        self._logger.info("channel_completed", channel_id=channel_id)

    async def send_error(self, channel_id: str, message: str, status_code: int = 500) -> None:
        """Emit the ``error`` event and close the channel."""
        channel = self._lookup(channel_id, "error")
        if channel is None:
            return
        event = ErrorEvent(message=message, status_code=status_code)
        await self._finish(channel, event.to_sse())
        self._logger.error(
            "channel_error", channel_id=channel_id, message=message, status_code=status_code
        )

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    async def stream(self, channel_id: str) -> AsyncIterator[str]:
        """Yield SSE frames for *channel_id* until it completes or closes."""
        channel = self._channels.get(channel_id)
        if channel is None:
            return
        while True:
            frame = await channel.queue.get()
            if frame is None:
                if self._channels.get(channel_id) is channel:
                    del self._channels[channel_id]
                return
            yield frame

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _lookup(self, channel_id: str, kind: str) -> _Channel | None:
        channel = self._channels.get(channel_id)
        if channel is None or channel.finished:
            self._logger.warning("channel_unknown", channel_id=channel_id, kind=kind)
            return None
        return channel

    async def _finish(self, channel: _Channel, frame: str) -> None:
        # Refuse further writes while the terminal frame waits for queue space;
        # a disconnect meanwhile still reaches close_channel and unblocks us.
        # The channel stays registered until its stream reads the sentinel.
        channel.finished = True
        await channel.queue.put(frame)
        await channel.queue.put(None)


def _drain(queue: asyncio.Queue[str | None]) -> None:
    while True:
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            return
