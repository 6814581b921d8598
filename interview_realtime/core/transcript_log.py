"""
Transcript log facade.

Wraps a TranscriptStore backend and adds an ordered, fire-and-forget write
path: ``record`` queues the write on a single writer task and returns
immediately, so client-facing code never waits on persistence, and events
land in the store in the order they were recorded.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .interfaces import EventType, TranscriptStore
from .models import Event, Session, SessionSummary

logger = logging.getLogger(__name__)

_Write = Tuple[Callable[..., Awaitable[Any]], tuple]


class TranscriptLog:
    """Durable, ordered, append-only record of session activity."""

    def __init__(self, store: TranscriptStore):
        self.store = store
        self._queue: Optional["asyncio.Queue[_Write]"] = None
        self._writer: Optional[asyncio.Task] = None

    # Direct operations (awaited by the caller)

    async def start(self, session_id: str) -> Session:
        return await self.store.start(session_id)

    async def append(self, session_id: str, event_type: EventType, **payload: Any) -> Event:
        return await self.store.append(session_id, EventType(event_type), payload)

    async def end(self, session_id: str) -> Optional[Session]:
        return await self.store.end(session_id)

    async def get(self, session_id: str) -> Optional[Session]:
        return await self.store.get(session_id)

    async def list(self) -> List[SessionSummary]:
        return await self.store.list()

    async def delete(self, session_id: str) -> bool:
        return await self.store.delete(session_id)

    async def prune(self, max_count: int) -> int:
        return await self.store.prune(max_count)

    # Fire-and-forget operations (ordered through the writer task)

    def record_start(self, session_id: str) -> None:
        """Queue the session start ahead of the events recorded after it."""
        self._enqueue(self.store.start, (session_id,))

    def record(self, session_id: Optional[str], event_type: EventType, **payload: Any) -> None:
        """Queue an event append. No-op without a session id."""
        if not session_id:
            return
        self._enqueue(self.store.append, (session_id, EventType(event_type), payload))

    def record_end(self, session_id: str) -> None:
        """Queue the end transition behind any events already recorded."""
        self._enqueue(self.store.end, (session_id,))

    def _enqueue(self, operation: Callable[..., Awaitable[Any]], args: tuple) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._writer is None or self._writer.done():
            self._writer = asyncio.get_running_loop().create_task(self._drain())
        self._queue.put_nowait((operation, args))

    async def _drain(self) -> None:
        assert self._queue is not None
        while True:
            operation, args = await self._queue.get()
            try:
                await operation(*args)
            except Exception as e:
                logger.error(f"Transcript write failed ({operation.__name__} {args[0]}): {e}", exc_info=True)
            finally:
                self._queue.task_done()

    @property
    def pending_writes(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def flush(self) -> None:
        """Wait until every queued write has been applied."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        await self.flush()
        if self._writer is not None:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None
        await self.store.close()
        logger.info("Transcript log closed")
