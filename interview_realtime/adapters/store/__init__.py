"""Transcript store backends."""

import logging
from typing import Any, Dict

from .memory import MemoryTranscriptStore
from .file import FileTranscriptStore
from .mongo import MongoTranscriptStore

logger = logging.getLogger(__name__)


def create_transcript_store(config: Dict[str, Any]):
    """
    Create the transcript store selected by ``transcripts.backend``.

    Args:
        config: The ``transcripts`` configuration section

    Returns:
        A TranscriptStore implementation
    """
    backend = (config.get("backend") or "memory").lower()

    if backend == "memory":
        store = MemoryTranscriptStore()
    elif backend == "file":
        store = FileTranscriptStore(config.get("directory") or "data/transcripts")
    elif backend == "mongo":
        store = MongoTranscriptStore(
            uri=config.get("mongodb_uri") or "",
            database=config.get("mongodb_db") or "ai_interview_test_tool",
            collection=config.get("mongodb_collection") or "transcripts",
            server_selection_timeout_ms=int(config.get("server_selection_timeout_ms") or 5000),
        )
    else:
        raise ValueError(f"Unknown transcript backend: {backend}. Available: memory, file, mongo")

    logger.info(f"Transcript store configured: {type(store).__name__}")
    return store


__all__ = [
    "MemoryTranscriptStore",
    "FileTranscriptStore",
    "MongoTranscriptStore",
    "create_transcript_store"
]
