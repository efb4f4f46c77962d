"""
Session outbox: the bounded, ordered event channel from one identification
loop to its consumer.

Emission never blocks the loop. When the queue is full the oldest queued
event is discarded to make room (chips/candidates events are full snapshots,
so the newest state survives). Closing is tracked apart from the queue and
never displaces an event, so the terminal event emitted before close() is
always the last item a consumer sees before the stream ends.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from .errors import OutboxClosedError
from .models.session import SessionUpdate

logger = logging.getLogger(__name__)


class SessionOutbox:
    """Single-producer, single-consumer event channel with drop-oldest overflow."""

    def __init__(self, maxsize: int = 100):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._wakeup = asyncio.Event()
        self._closed = False
        self.dropped = 0
        self.emitted = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def qsize(self) -> int:
        return self._queue.qsize()

    def emit(self, update: SessionUpdate) -> None:
        """Queue one event. Raises OutboxClosedError after close()."""
        if self._closed:
            raise OutboxClosedError(f"Cannot emit '{update.type.value}' into a closed outbox")
        while True:
            try:
                self._queue.put_nowait(update)
                break
            except asyncio.QueueFull:
                discarded = self._queue.get_nowait()
                self.dropped += 1
                logger.warning(
                    "[outbox] queue full (size=%d), dropped oldest '%s' event",
                    self._queue.maxsize, discarded.type.value,
                )
        self.emitted += 1
        self._wakeup.set()

    def close(self) -> bool:
        """Close the channel. Returns False when it was already closed."""
        if self._closed:
            return False
        self._closed = True
        self._wakeup.set()
        return True

    async def _next(self) -> Optional[SessionUpdate]:
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._closed:
                return None
            self._wakeup.clear()
            await self._wakeup.wait()

    async def next(self, timeout: Optional[float] = None) -> Optional[SessionUpdate]:
        """
        Wait for the next event.

        Returns None once the channel is closed and drained. Raises
        asyncio.TimeoutError when timeout elapses first.
        """
        if timeout is None:
            return await self._next()
        return await asyncio.wait_for(self._next(), timeout)

    def __aiter__(self) -> AsyncIterator[SessionUpdate]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[SessionUpdate]:
        while True:
            update = await self.next()
            if update is None:
                return
            yield update
