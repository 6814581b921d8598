"""
Chunk aggregator for streaming audio capture.

Accumulates binary audio fragments per connection and turns them into
provider-ready buffers:

- every fragment restarts a single debounce timer; when the stream pauses the
  timer fires an *interim* transcription of everything buffered so far
  (the buffer is kept, interim results preview an utterance in progress);
- ``detach`` closes the current segment at once, so later fragments open a
  new one; ``complete`` then transcribes the detached segment and emits the
  *final* result (``finalize`` does both);
- ``discard`` drops the buffer without a final transcription.

At most one timer is pending and at most one timer-triggered provider call is
in flight per connection. A timer that fires while a call is in flight is
deferred until that call completes.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .errors import ProviderError
from .interfaces import EventType, Stage, STTEngine, TranscriptionResult

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 400


@dataclass
class StreamTranscript:
    """Interim or final transcription of one connection's buffer."""

    connection_id: str
    session_id: Optional[str]
    event_type: EventType
    text: str
    provider: str
    segments: List[Any] = field(default_factory=list)

    @property
    def is_final(self) -> bool:
        return self.event_type == EventType.FINAL_TRANSCRIPT


@dataclass
class StreamError:
    """A failed transcription attempt for one connection."""

    connection_id: str
    session_id: Optional[str]
    error: ProviderError


class StreamSink(Protocol):
    """Receives everything the aggregator produces."""

    async def on_transcript(self, result: StreamTranscript) -> None:
        ...

    async def on_stream_error(self, error: StreamError) -> None:
        ...


@dataclass
class _StreamState:
    session_id: Optional[str]
    fragments: List[bytes] = field(default_factory=list)
    timer: Optional[asyncio.TimerHandle] = None
    in_flight: Optional[asyncio.Task] = None
    flush_deferred: bool = False

    @property
    def buffered_bytes(self) -> int:
        return sum(len(f) for f in self.fragments)


class ChunkAggregator:
    """Per-connection fragment buffers with debounced interim transcription."""

    def __init__(
        self,
        stt_engine: STTEngine,
        sink: Optional[StreamSink] = None,
        debounce_ms: float = DEFAULT_DEBOUNCE_MS,
        language: Optional[str] = None,
        mimetype: str = "audio/webm"
    ):
        """
        Initialize the aggregator.

        Args:
            stt_engine: Transcription capability
            sink: Receiver for interim/final results and errors
            debounce_ms: Quiet period after the last fragment before an interim flush
            language: Language passed to the provider
            mimetype: MIME type of the streamed audio
        """
        self.stt_engine = stt_engine
        self.sink = sink
        self.debounce_seconds = debounce_ms / 1000.0
        self.language = language
        self.mimetype = mimetype
        self._streams: Dict[str, _StreamState] = {}

        logger.info(f"ChunkAggregator initialized: debounce={debounce_ms}ms, provider={stt_engine.name}")

    def push_fragment(self, connection_id: str, data: bytes, session_id: Optional[str] = None) -> None:
        """Buffer a fragment and restart the connection's debounce timer."""
        if not data:
            return

        state = self._streams.get(connection_id)
        if state is None:
            state = _StreamState(session_id=session_id)
            self._streams[connection_id] = state
            logger.debug(f"Stream buffer created for connection {connection_id}")
        elif session_id is not None:
            state.session_id = session_id

        state.fragments.append(bytes(data))
        self._restart_timer(connection_id, state)

    def detach(self, connection_id: str, session_id: Optional[str] = None) -> _StreamState:
        """
        Close the current capture segment without transcribing it.

        The buffer is released immediately, so fragments pushed afterwards
        start a new segment. Pass the returned state to ``complete``.
        """
        state = self._streams.pop(connection_id, None)
        if state is None:
            state = _StreamState(session_id=session_id)
        elif session_id is not None and state.session_id is None:
            state.session_id = session_id

        self._cancel_timer(state)
        state.flush_deferred = False
        return state

    async def complete(self, connection_id: str, state: _StreamState) -> StreamTranscript:
        """
        Transcribe a detached segment and emit the final result.

        An empty segment still produces an empty-text final result so the
        client always receives a terminal signal.
        """
        # Let a running interim flush land before the final result
        if state.in_flight is not None and not state.in_flight.done():
            await asyncio.wait({state.in_flight})

        audio = b"".join(state.fragments)
        state.fragments.clear()

        text = ""
        provider = self.stt_engine.name
        segments: List[Any] = []
        if audio:
            try:
                result = await self._transcribe(audio)
                text, provider, segments = result.text, result.provider, result.segments
            except ProviderError as e:
                await self._emit_error(StreamError(connection_id, state.session_id, e))

        final = StreamTranscript(
            connection_id=connection_id,
            session_id=state.session_id,
            event_type=EventType.FINAL_TRANSCRIPT,
            text=text,
            provider=provider,
            segments=segments,
        )
        logger.info(f"Final transcript for {connection_id}: {len(audio)} bytes -> {len(text)} chars")
        await self._emit(final)
        return final

    async def finalize(self, connection_id: str, session_id: Optional[str] = None) -> StreamTranscript:
        """Detach and transcribe the current segment in one step."""
        return await self.complete(connection_id, self.detach(connection_id, session_id=session_id))

    def discard(self, connection_id: str) -> int:
        """
        Drop a connection's buffer without a final transcription.

        An in-flight provider call is left running; its result still reaches
        the sink.

        Returns:
            Number of buffered bytes discarded
        """
        state = self._streams.pop(connection_id, None)
        if state is None:
            return 0

        self._cancel_timer(state)
        state.flush_deferred = False
        dropped = state.buffered_bytes
        state.fragments.clear()
        if dropped:
            logger.info(f"Discarded {dropped} unflushed bytes for connection {connection_id}")
        return dropped

    async def single_shot(
        self,
        data: bytes,
        language: Optional[str] = None,
        mimetype: Optional[str] = None
    ) -> TranscriptionResult:
        """Transcribe one complete blob without touching any stream buffer."""
        if not data:
            return TranscriptionResult(text="", provider=self.stt_engine.name)
        return await self._transcribe(data, language=language, mimetype=mimetype)

    # Introspection

    def is_streaming(self, connection_id: str) -> bool:
        return connection_id in self._streams

    def has_pending_timer(self, connection_id: str) -> bool:
        state = self._streams.get(connection_id)
        return state is not None and state.timer is not None

    def buffered_bytes(self, connection_id: str) -> int:
        state = self._streams.get(connection_id)
        return state.buffered_bytes if state else 0

    @property
    def active_streams(self) -> int:
        return len(self._streams)

    # Internals

    def _restart_timer(self, connection_id: str, state: _StreamState) -> None:
        self._cancel_timer(state)
        loop = asyncio.get_running_loop()
        state.timer = loop.call_later(self.debounce_seconds, self._on_timer, connection_id, state)

    @staticmethod
    def _cancel_timer(state: _StreamState) -> None:
        if state.timer is not None:
            state.timer.cancel()
            state.timer = None

    def _on_timer(self, connection_id: str, state: _StreamState) -> None:
        state.timer = None
        if self._streams.get(connection_id) is not state:
            return

        if state.in_flight is not None and not state.in_flight.done():
            state.flush_deferred = True
            return

        state.in_flight = asyncio.get_running_loop().create_task(
            self._interim_flush(connection_id, state)
        )

    async def _interim_flush(self, connection_id: str, state: _StreamState) -> None:
        audio = b"".join(state.fragments)
        try:
            result = await self._transcribe(audio)
        except ProviderError as e:
            await self._emit_error(StreamError(connection_id, state.session_id, e))
        else:
            await self._emit(StreamTranscript(
                connection_id=connection_id,
                session_id=state.session_id,
                event_type=EventType.INTERIM_TRANSCRIPT,
                text=result.text,
                provider=result.provider,
                segments=result.segments,
            ))
        finally:
            if state.flush_deferred and self._streams.get(connection_id) is state:
                state.flush_deferred = False
                self._restart_timer(connection_id, state)

    async def _transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        mimetype: Optional[str] = None
    ) -> TranscriptionResult:
        try:
            return await self.stt_engine.transcribe(
                audio,
                language=language or self.language,
                mimetype=mimetype or self.mimetype,
            )
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"Unexpected transcription failure: {e}", exc_info=True)
            raise ProviderError(str(e), Stage.STT, provider=self.stt_engine.name) from e

    async def _emit(self, result: StreamTranscript) -> None:
        if self.sink is None:
            return
        try:
            await self.sink.on_transcript(result)
        except Exception as e:
            logger.error(f"Transcript sink failed for {result.connection_id}: {e}", exc_info=True)

    async def _emit_error(self, error: StreamError) -> None:
        logger.warning(f"Stream transcription failed for {error.connection_id}: {error.error.message}")
        if self.sink is None:
            return
        try:
            await self.sink.on_stream_error(error)
        except Exception as e:
            logger.error(f"Error sink failed for {error.connection_id}: {e}", exc_info=True)
