"""
MongoDB transcript store.

One document per session in a single collection:

    {id, startedAt, endedAt, events: [...], createdAt, updatedAt}

The connection is opened lazily on first use. A failed connect is not
cached, so the next call tries again. Every operation degrades instead of
raising: writes fall back to an in-memory result, reads to empty results.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from ...core.errors import PersistenceError
from ...core.interfaces import EventType
from ...core.models import Event, Session, SessionSummary, parse_timestamp, utc_now

logger = logging.getLogger(__name__)


class MongoTranscriptStore:
    """Transcript store backed by a motor collection."""

    name = "mongo"

    def __init__(
        self,
        uri: str = "",
        database: str = "ai_interview_test_tool",
        collection: str = "transcripts",
        server_selection_timeout_ms: int = 5000,
        client: Optional[AsyncIOMotorClient] = None
    ):
        self.uri = uri
        self.database = database
        self.collection_name = collection
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client = client
        self._collection: Optional[AsyncIOMotorCollection] = None
        self._connect_lock = asyncio.Lock()
        self._last_ts: Dict[str, datetime] = {}

    async def _get_collection(self) -> AsyncIOMotorCollection:
        if self._collection is not None:
            return self._collection

        async with self._connect_lock:
            if self._collection is not None:
                return self._collection

            if self._client is None:
                if not self.uri:
                    raise PersistenceError("MONGODB_URI not set")
                self._client = AsyncIOMotorClient(
                    self.uri,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                )

            collection = self._client[self.database][self.collection_name]
            await collection.create_index("id", unique=True)
            await collection.create_index("createdAt")
            await collection.create_index("updatedAt")
            self._collection = collection
            logger.info(f"Connected to MongoDB collection {self.database}.{self.collection_name}")

        return self._collection

    async def start(self, session_id: str) -> Session:
        try:
            col = await self._get_collection()
            now = utc_now()
            await col.update_one(
                {"id": session_id},
                {
                    "$setOnInsert": self._base_document(session_id, now),
                    "$set": {"updatedAt": now},
                },
                upsert=True,
            )
            doc = await col.find_one({"id": session_id}, {"_id": 0})
            return Session.from_dict(doc) if doc else Session(id=session_id)
        except Exception as e:
            logger.error(f"Mongo start error for {session_id}: {e}")
            return Session(id=session_id)

    async def append(
        self,
        session_id: str,
        event_type: EventType,
        payload: Dict[str, Any]
    ) -> Event:
        ts = utc_now()
        try:
            col = await self._get_collection()
            ts = max(ts, await self._last_event_ts(col, session_id) or ts)
            event = Event(ts=ts, type=EventType(event_type), payload=dict(payload))
            now = utc_now()
            base = self._base_document(session_id, now)
            del base["events"]
            await col.update_one(
                {"id": session_id},
                {
                    "$setOnInsert": base,
                    "$push": {"events": event.to_dict()},
                    "$set": {"updatedAt": now},
                },
                upsert=True,
            )
            self._last_ts[session_id] = ts
            return event
        except Exception as e:
            logger.error(f"Mongo append error for {session_id}: {e}")
            return Event(ts=ts, type=EventType(event_type), payload=dict(payload))

    async def _last_event_ts(self, col: AsyncIOMotorCollection, session_id: str) -> Optional[datetime]:
        """Timestamp of the session's newest event; events never go back in time."""
        if session_id in self._last_ts:
            return self._last_ts[session_id]
        doc = await col.find_one({"id": session_id}, {"_id": 0, "events": {"$slice": -1}})
        events = (doc or {}).get("events") or []
        return parse_timestamp(events[-1]["ts"]) if events else None

    async def end(self, session_id: str) -> Optional[Session]:
        try:
            col = await self._get_collection()
            now = utc_now()
            await col.update_one(
                {"id": session_id, "endedAt": None},
                {"$set": {"endedAt": now.isoformat(), "updatedAt": now}},
            )
            doc = await col.find_one({"id": session_id}, {"_id": 0})
            return Session.from_dict(doc) if doc else None
        except Exception as e:
            logger.error(f"Mongo end error for {session_id}: {e}")
            return None

    async def get(self, session_id: str) -> Optional[Session]:
        try:
            col = await self._get_collection()
            doc = await col.find_one({"id": session_id}, {"_id": 0})
            return Session.from_dict(doc) if doc else None
        except Exception as e:
            logger.error(f"Mongo get error for {session_id}: {e}")
            return None

    async def list(self) -> List[SessionSummary]:
        try:
            col = await self._get_collection()
            cursor = col.aggregate([
                {"$project": {
                    "_id": 0,
                    "id": 1,
                    "startedAt": 1,
                    "endedAt": 1,
                    "eventCount": {"$size": {"$ifNull": ["$events", []]}},
                    "createdAt": 1,
                }},
                {"$sort": {"createdAt": -1}},
            ])
            docs = await cursor.to_list(length=None)
            summaries = []
            for doc in docs:
                summaries.append(SessionSummary(
                    id=doc["id"],
                    started_at=parse_timestamp(doc.get("startedAt")) or parse_timestamp(doc.get("createdAt")),
                    ended_at=parse_timestamp(doc.get("endedAt")),
                    event_count=doc.get("eventCount", 0),
                ))
            return summaries
        except Exception as e:
            logger.error(f"Mongo list error: {e}")
            return []

    async def delete(self, session_id: str) -> bool:
        try:
            col = await self._get_collection()
            result = await col.delete_one({"id": session_id})
            self._last_ts.pop(session_id, None)
            return result.deleted_count > 0
        except Exception as e:
            logger.error(f"Mongo delete error for {session_id}: {e}")
            return False

    async def prune(self, max_count: int) -> int:
        try:
            col = await self._get_collection()
            count = await col.count_documents({})
            if count <= max_count:
                return 0

            cursor = col.find({}, {"_id": 0, "id": 1}).sort("createdAt", 1).limit(count - max_count)
            ids = [doc["id"] for doc in await cursor.to_list(length=None)]
            if not ids:
                return 0

            result = await col.delete_many({"id": {"$in": ids}})
            for session_id in ids:
                self._last_ts.pop(session_id, None)
            logger.info(f"Pruned {result.deleted_count} transcript sessions (limit {max_count})")
            return result.deleted_count
        except Exception as e:
            logger.error(f"Mongo prune error: {e}")
            return 0

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._collection = None
            logger.info("MongoDB connection closed")

    @staticmethod
    def _base_document(session_id: str, now) -> Dict[str, Any]:
        return {
            "id": session_id,
            "startedAt": now.isoformat(),
            "endedAt": None,
            "events": [],
            "createdAt": now,
        }
