"""
Retention policy for stored transcripts.

Bounds the number of stored sessions, evicting the oldest first. Runs
opportunistically in the background whenever a session starts, and on
explicit operator request with an explicit maximum.
"""

import asyncio
import logging
from typing import Optional

from .transcript_log import TranscriptLog

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 500


class RetentionPolicy:
    """Count-based, oldest-first transcript retention."""

    def __init__(self, log: TranscriptLog, max_sessions: int = DEFAULT_MAX_SESSIONS):
        if max_sessions < 0:
            raise ValueError("max_sessions must be >= 0")
        self.log = log
        self.max_sessions = max_sessions
        self._task: Optional[asyncio.Task] = None

    async def prune(self, max_count: Optional[int] = None) -> int:
        """
        Delete the oldest sessions until at most ``max_count`` remain.

        Args:
            max_count: Explicit limit, defaults to the configured maximum

        Returns:
            Number of sessions actually deleted
        """
        limit = self.max_sessions if max_count is None else max_count
        if limit < 0:
            raise ValueError("max_count must be >= 0")

        deleted = await self.log.prune(limit)
        if deleted:
            logger.info(f"Retention removed {deleted} sessions (limit {limit})")
        return deleted

    def schedule(self) -> None:
        """Start a background prune unless one is already running."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        try:
            await self.prune()
        except Exception as e:
            logger.error(f"Background retention prune failed: {e}", exc_info=True)

    async def wait(self) -> None:
        """Wait for a scheduled prune to finish."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
