"""
File-backed transcript store.

One JSON document per session under a directory. Writes go to a temporary
file in the same directory and are moved into place with ``os.replace`` so a
crash mid-write never leaves a truncated transcript behind.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union
from urllib.parse import quote

from .memory import MemoryTranscriptStore
from ...core.models import Session

logger = logging.getLogger(__name__)


class FileTranscriptStore(MemoryTranscriptStore):
    """Memory store mirrored to ``<directory>/<percent-encoded session id>.json``."""

    name = "file"

    def __init__(self, directory: Union[str, Path]):
        super().__init__()
        self.directory = Path(directory)
        self._write_lock = asyncio.Lock()
        self.directory.mkdir(parents=True, exist_ok=True)
        self._load_existing()

    def _load_existing(self) -> None:
        """Load transcripts persisted by a previous run."""
        loaded = 0
        for path in sorted(self.directory.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    session = Session.from_dict(json.load(f))
                self._sessions[session.id] = session
                loaded += 1
            except (OSError, ValueError, KeyError) as e:
                logger.warning(f"Skipping unreadable transcript file {path}: {e}")

        logger.info(f"FileTranscriptStore loaded {loaded} sessions from {self.directory}")

    def _path_for(self, session_id: str) -> Path:
        # Percent-encoding keeps distinct ids in distinct files
        return self.directory / f"{quote(session_id, safe='')}.json"

    async def _persist(self, session: Session) -> None:
        async with self._write_lock:
            if self._sessions.get(session.id) is not session:
                # Deleted or pruned while waiting for the lock
                return
            document = session.to_dict()
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(None, self._write_atomic, self._path_for(session.id), document)
            except OSError as e:
                logger.error(f"Transcript persist error for {session.id}: {e}")

    def _write_atomic(self, path: Path, document: dict) -> None:
        fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=str(self.directory))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    async def _remove_persisted(self, session_id: str) -> bool:
        path = self._path_for(session_id)
        async with self._write_lock:
            try:
                path.unlink()
                return True
            except FileNotFoundError:
                return False
            except OSError as e:
                logger.error(f"Transcript delete error for {session_id}: {e}")
                return False
