"""
In-memory transcript store.

Keeps every session in a dict keyed by session id. Used on its own for
development and tests, and as the working set of the file-backed store.
"""

import logging
from typing import Dict, List, Optional, Any

from ...core.interfaces import EventType
from ...core.models import Event, Session, SessionSummary

logger = logging.getLogger(__name__)


class MemoryTranscriptStore:
    """Transcript store backed by a process-local dict."""

    name = "memory"

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        logger.debug("MemoryTranscriptStore initialized")

    async def start(self, session_id: str) -> Session:
        """Create the session if missing. Never resets an existing one."""
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(id=session_id)
            self._sessions[session_id] = session
            logger.info(f"Transcript session started: {session_id}")
            await self._persist(session)
        return self._snapshot(session)

    async def append(
        self,
        session_id: str,
        event_type: EventType,
        payload: Dict[str, Any]
    ) -> Event:
        if session_id not in self._sessions:
            await self.start(session_id)
        session = self._sessions[session_id]
        event = session.add_event(event_type, payload)
        await self._persist(session)
        return event

    async def end(self, session_id: str) -> Optional[Session]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.mark_ended():
            logger.info(f"Transcript session ended: {session_id} ({len(session.events)} events)")
            await self._persist(session)
        return self._snapshot(session)

    async def get(self, session_id: str) -> Optional[Session]:
        session = self._sessions.get(session_id)
        return self._snapshot(session) if session else None

    async def list(self) -> List[SessionSummary]:
        sessions = sorted(self._sessions.values(), key=lambda s: s.started_at, reverse=True)
        return [session.summary() for session in sessions]

    async def delete(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        removed = await self._remove_persisted(session_id)
        return session is not None or removed

    async def prune(self, max_count: int) -> int:
        """Delete the oldest sessions until at most ``max_count`` remain."""
        excess = len(self._sessions) - max_count
        if excess <= 0:
            return 0

        oldest = sorted(self._sessions.values(), key=lambda s: s.started_at)[:excess]
        deleted = 0
        for session in oldest:
            if await self.delete(session.id):
                deleted += 1

        logger.info(f"Pruned {deleted} transcript sessions (limit {max_count})")
        return deleted

    async def close(self) -> None:
        pass

    # Persistence hooks for subclasses

    async def _persist(self, session: Session) -> None:
        pass

    async def _remove_persisted(self, session_id: str) -> bool:
        return False

    @staticmethod
    def _snapshot(session: Session) -> Session:
        return Session(
            id=session.id,
            started_at=session.started_at,
            ended_at=session.ended_at,
            events=list(session.events),
        )

    @property
    def session_count(self) -> int:
        return len(self._sessions)
