"""Fake providers, channels and sinks shared by the test suite."""

import asyncio
import collections
import copy
import json
from typing import Any, Dict, List, Optional

from interview_realtime import InterviewEngine
from interview_realtime.adapters.config import create_test_config
from interview_realtime.adapters.store import MemoryTranscriptStore
from interview_realtime.adapters.websocket import BaseWebSocketAdapter
from interview_realtime.core.aggregator import StreamError, StreamTranscript
from interview_realtime.core.errors import ProviderError
from interview_realtime.core.interfaces import (
    GenerationResult, Stage, SynthesisResult, TranscriptionResult
)

DEBOUNCE_MS = 30


class FakeSTT:
    """Transcribes by decoding the audio bytes, so tests can see what was flushed."""

    name = "fake-stt"

    def __init__(self, delay: float = 0.0, fail: bool = False):
        self.delay = delay
        self.fail = fail
        self.calls: List[bytes] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def transcribe(self, audio: bytes, language: Optional[str] = None,
                         mimetype: Optional[str] = None) -> TranscriptionResult:
        self.calls.append(audio)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail:
                raise ProviderError("transcription backend unavailable", Stage.STT, provider=self.name)
            return TranscriptionResult(text=audio.decode("utf-8", "replace"), provider=self.name)
        finally:
            self.in_flight -= 1


class FakeLLM:
    name = "fake-llm"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.prompts: List[str] = []

    async def generate(self, prompt: str, model: Optional[str] = None,
                       temperature: Optional[float] = None, system: Optional[str] = None) -> GenerationResult:
        self.prompts.append(prompt)
        if self.fail:
            raise ProviderError("generation quota exceeded", Stage.LLM, provider=self.name)
        question = prompt.rsplit("Question:", 1)[-1].strip()
        return GenerationResult(text=f"Here is how I would answer: {question}", provider=self.name, model="fake-1")


class FakeTTS:
    name = "fake-tts"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.texts: List[str] = []

    async def synthesize(self, text: str, voice: Optional[str] = None, model: Optional[str] = None,
                         format: Optional[str] = None) -> SynthesisResult:
        self.texts.append(text)
        if self.fail:
            raise ProviderError("Missing ELEVENLABS_API_KEY/TTS_API_KEY for fake-tts", Stage.TTS, provider=self.name)
        return SynthesisResult(audio=b"ID3-fake-mp3", mime_type="audio/mpeg", provider=self.name)


class CollectingChannel:
    """OutboundChannel that keeps every message it is given."""

    def __init__(self):
        self.messages: List[Dict[str, Any]] = []
        self.connected = True

    def send(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def is_connected(self) -> bool:
        return self.connected

    def of_type(self, message_type: str) -> List[Dict[str, Any]]:
        return [m for m in self.messages if m["type"] == message_type]


class RecordingSink:
    """StreamSink that records results and errors in delivery order."""

    def __init__(self):
        self.delivered: List[Any] = []

    async def on_transcript(self, result: StreamTranscript) -> None:
        self.delivered.append(result)

    async def on_stream_error(self, error: StreamError) -> None:
        self.delivered.append(error)

    @property
    def transcripts(self) -> List[StreamTranscript]:
        return [d for d in self.delivered if isinstance(d, StreamTranscript)]

    @property
    def errors(self) -> List[StreamError]:
        return [d for d in self.delivered if isinstance(d, StreamError)]


def build_engine(stt=None, llm=None, tts=None, store=None, **config_sections) -> InterviewEngine:
    """Engine wired to fakes with a short debounce."""
    streaming = {"debounce_ms": DEBOUNCE_MS}
    streaming.update(config_sections.pop("streaming", {}))
    engine = InterviewEngine(create_test_config(streaming=streaming, **config_sections))
    engine.configure_stt(stt or FakeSTT())
    engine.configure_llm(llm or FakeLLM())
    if tts is not False:
        engine.configure_tts(tts or FakeTTS())
    engine.configure_transcript_store(store or MemoryTranscriptStore())
    return engine


async def settle(debounces: float = 3.0) -> None:
    """Sleep long enough for pending debounce timers to fire."""
    await asyncio.sleep(DEBOUNCE_MS / 1000.0 * debounces)




class ScriptedWebSocket(BaseWebSocketAdapter):
    """WebSocket adapter driven from the test: feed frames in, read ``sent`` out."""

    def __init__(self):
        super().__init__()
        self.inbound: "asyncio.Queue[Optional[Any]]" = asyncio.Queue()
        self.sent: List[Dict[str, Any]] = []
        self.closed_with: Optional[int] = None

    async def _accept_connection_impl(self) -> None:
        pass

    async def _receive_data(self) -> Optional[Any]:
        item = await self.inbound.get()
        if item is None:
            self._is_connected = False
        return item

    async def _send_json_impl(self, data: Dict[str, Any]) -> None:
        self.sent.append(data)

    async def _close_connection_impl(self, code: int) -> None:
        self.closed_with = code

    def feed_json(self, message: Dict[str, Any]) -> None:
        self.inbound.put_nowait(json.dumps(message))

    def feed_bytes(self, data: bytes) -> None:
        self.inbound.put_nowait(data)

    def hang_up(self) -> None:
        self.inbound.put_nowait(None)

    def of_type(self, message_type: str) -> List[Dict[str, Any]]:
        return [m for m in self.sent if m["type"] == message_type]


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Poll until ``predicate()`` is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class SlowStartStore(MemoryTranscriptStore):
    """Memory store whose session start takes ``delay`` seconds."""

    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay

    async def start(self, session_id):
        await asyncio.sleep(self.delay)
        return await super().start(session_id)


class _DeleteResult:
    def __init__(self, deleted_count: int):
        self.deleted_count = deleted_count


class _FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]], fields: Optional[List[str]] = None):
        self._docs = docs
        self._fields = fields

    def sort(self, key: str, direction: int) -> "_FakeCursor":
        self._docs = sorted(self._docs, key=lambda doc: doc[key], reverse=direction < 0)
        return self

    def limit(self, count: int) -> "_FakeCursor":
        self._docs = self._docs[:count]
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        if self._fields is None:
            return copy.deepcopy(self._docs)
        return [{k: doc[k] for k in self._fields if k in doc} for doc in self._docs]


def _evaluate(expression: Any, doc: Dict[str, Any]) -> Any:
    if isinstance(expression, str) and expression.startswith("$"):
        return doc.get(expression[1:])
    if isinstance(expression, dict) and "$size" in expression:
        return len(_evaluate(expression["$size"], doc))
    if isinstance(expression, dict) and "$ifNull" in expression:
        value, fallback = expression["$ifNull"]
        resolved = _evaluate(value, doc)
        return fallback if resolved is None else resolved
    return expression


class FakeMongoCollection:
    """In-memory stand-in for the handful of motor collection calls the store makes."""

    def __init__(self):
        self.docs: List[Dict[str, Any]] = []
        self.indexes: List[str] = []

    @staticmethod
    def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
        for key, expected in query.items():
            if isinstance(expected, dict) and "$in" in expected:
                if doc.get(key) not in expected["$in"]:
                    return False
            elif doc.get(key) != expected:
                return False
        return True

    async def create_index(self, key: str, **kwargs: Any) -> str:
        self.indexes.append(key)
        return key

    async def update_one(self, query, update, upsert: bool = False) -> None:
        doc = next((d for d in self.docs if self._matches(d, query)), None)
        if doc is None:
            if not upsert:
                return
            doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            doc.update(copy.deepcopy(update.get("$setOnInsert", {})))
            self.docs.append(doc)
        doc.update(copy.deepcopy(update.get("$set", {})))
        for key, value in update.get("$push", {}).items():
            doc.setdefault(key, []).append(copy.deepcopy(value))

    async def find_one(self, query, projection=None) -> Optional[Dict[str, Any]]:
        doc = next((d for d in self.docs if self._matches(d, query)), None)
        return copy.deepcopy(doc) if doc is not None else None

    def find(self, query, projection=None) -> _FakeCursor:
        fields = [k for k, v in (projection or {}).items() if v] or None
        return _FakeCursor([d for d in self.docs if self._matches(d, query)], fields)

    def aggregate(self, pipeline) -> _FakeCursor:
        docs = copy.deepcopy(self.docs)
        for stage in pipeline:
            if "$project" in stage:
                spec = stage["$project"]
                docs = [
                    {k: (doc.get(k) if v == 1 else _evaluate(v, doc)) for k, v in spec.items() if v != 0}
                    for doc in docs
                ]
            elif "$sort" in stage:
                (key, direction), = stage["$sort"].items()
                docs = sorted(docs, key=lambda doc: doc[key], reverse=direction < 0)
        return _FakeCursor(docs)

    async def count_documents(self, query) -> int:
        return sum(1 for d in self.docs if self._matches(d, query))

    async def delete_one(self, query) -> _DeleteResult:
        for index, doc in enumerate(self.docs):
            if self._matches(doc, query):
                del self.docs[index]
                return _DeleteResult(1)
        return _DeleteResult(0)

    async def delete_many(self, query) -> _DeleteResult:
        kept = [d for d in self.docs if not self._matches(d, query)]
        deleted = len(self.docs) - len(kept)
        self.docs = kept
        return _DeleteResult(deleted)


class FakeMongoClient:
    """``client[database][collection]`` always resolves to one fake collection."""

    def __init__(self):
        self.collection = FakeMongoCollection()
        self.closed = False

    def __getitem__(self, database: str) -> Dict[str, FakeMongoCollection]:
        return collections.defaultdict(lambda: self.collection)

    def close(self) -> None:
        self.closed = True
