"""
Core interview engine.

This module contains the InterviewEngine class that wires the provider
capabilities, the transcript log, the chunk aggregator, the session registry
and the dispatcher together, and runs the long-lived connection loop that
both the WebSocket router and tests drive through a WebSocketAdapter.
"""

import asyncio
import base64
import binascii
import logging
import uuid
from typing import Any, Dict, Optional, Set

from .aggregator import DEFAULT_DEBOUNCE_MS, ChunkAggregator
from .dispatcher import DEFAULT_SYSTEM_PROMPT, PROMPT_TEMPLATE, Dispatcher
from .errors import InvalidTransitionError, ProviderError
from .interfaces import (
    ConfigurationProvider, LLMEngine, Stage, STTEngine, TranscriptStore, TTSEngine,
    WebSocketAdapter
)
from .messages import error_message, ready_message
from .pipeline import ExchangePipeline
from .providers import ProviderRegistry
from .registry import Connection, SessionRegistry
from .retention import DEFAULT_MAX_SESSIONS, RetentionPolicy
from .transcript_log import TranscriptLog

logger = logging.getLogger(__name__)


class InterviewEngine:
    """
    Orchestrates STT, LLM and TTS for interview practice sessions over a
    configurable middleware pipeline.
    """

    def __init__(self, config_provider: Optional[ConfigurationProvider] = None):
        """
        Initialize the interview engine.

        Args:
            config_provider: Configuration provider for engine settings
        """
        self.config_provider = config_provider

        # Capabilities (set via configure_* methods)
        self.stt_engine: Optional[STTEngine] = None
        self.llm_engine: Optional[LLMEngine] = None
        self.tts_engine: Optional[TTSEngine] = None
        self.transcript_store: Optional[TranscriptStore] = None

        self.pipeline = ExchangePipeline()

        # Built on first use
        self._log: Optional[TranscriptLog] = None
        self._aggregator: Optional[ChunkAggregator] = None
        self._registry: Optional[SessionRegistry] = None
        self._dispatcher: Optional[Dispatcher] = None
        self._retention: Optional[RetentionPolicy] = None

        self._tasks: Set[asyncio.Task] = set()

        logger.info("InterviewEngine initialized")

    @classmethod
    def from_config(
        cls,
        config_provider: ConfigurationProvider,
        providers: Optional[ProviderRegistry] = None,
        store: Optional[TranscriptStore] = None
    ) -> "InterviewEngine":
        """
        Build an engine with every capability resolved from configuration.

        Args:
            config_provider: Configuration source
            providers: Provider registry, defaults to the bundled adapters
            store: Transcript store, defaults to the configured backend

        Raises:
            ValueError: if a configured provider or backend name is unknown
        """
        from ..adapters.providers import default_provider_registry
        from ..adapters.store import create_transcript_store

        providers = providers or default_provider_registry()
        engine = cls(config_provider)

        stt_config = config_provider.get_stt_config()
        llm_config = config_provider.get_llm_config()
        tts_config = config_provider.get_tts_config()

        engine.configure_stt(providers.create("stt", stt_config.get("provider"), stt_config))
        engine.configure_llm(providers.create("llm", llm_config.get("provider"), llm_config))
        if tts_config.get("provider"):
            engine.configure_tts(providers.create("tts", tts_config.get("provider"), tts_config))
        engine.configure_transcript_store(
            store or create_transcript_store(config_provider.get_transcripts_config())
        )
        return engine

    def configure_stt(self, stt_engine: STTEngine) -> None:
        """Configure the Speech-to-Text capability."""
        self._require_unbuilt()
        self.stt_engine = stt_engine
        logger.info(f"STT engine configured: {type(stt_engine).__name__}")

    def configure_llm(self, llm_engine: LLMEngine) -> None:
        """Configure the text generation capability."""
        self._require_unbuilt()
        self.llm_engine = llm_engine
        logger.info(f"LLM engine configured: {type(llm_engine).__name__}")

    def configure_tts(self, tts_engine: TTSEngine) -> None:
        """Configure the Text-to-Speech capability."""
        self._require_unbuilt()
        self.tts_engine = tts_engine
        logger.info(f"TTS engine configured: {type(tts_engine).__name__}")

    def configure_transcript_store(self, store: TranscriptStore) -> None:
        """Configure the transcript store backend."""
        self._require_unbuilt()
        self.transcript_store = store
        logger.info(f"Transcript store configured: {type(store).__name__}")

    def add_middleware(self, middleware) -> None:
        """Add middleware to the exchange pipeline."""
        self.pipeline.add_middleware(middleware)
        logger.info(f"Middleware added: {type(middleware).__name__}")

    def _require_unbuilt(self) -> None:
        if self._registry is not None:
            raise RuntimeError("InterviewEngine components are already built")

    # Component wiring

    def _config(self, getter: str) -> Dict[str, Any]:
        if self.config_provider is None:
            return {}
        return getattr(self.config_provider, getter)() or {}

    def build(self) -> None:
        """Wire the runtime components. Called lazily on first use."""
        if self._registry is not None:
            return
        if self.stt_engine is None or self.llm_engine is None:
            raise ValueError("InterviewEngine requires STT and LLM engines")

        if self.transcript_store is None:
            from ..adapters.store import MemoryTranscriptStore
            self.transcript_store = MemoryTranscriptStore()

        stt_config = self._config("get_stt_config")
        llm_config = self._config("get_llm_config")
        tts_config = self._config("get_tts_config")
        streaming_config = self._config("get_streaming_config")
        transcripts_config = self._config("get_transcripts_config")

        self._log = TranscriptLog(self.transcript_store)
        self._retention = RetentionPolicy(
            self._log,
            max_sessions=transcripts_config.get("max_sessions", DEFAULT_MAX_SESSIONS),
        )
        self._aggregator = ChunkAggregator(
            self.stt_engine,
            debounce_ms=streaming_config.get("debounce_ms", DEFAULT_DEBOUNCE_MS),
            language=stt_config.get("language"),
            mimetype=stt_config.get("mimetype") or "audio/webm",
        )
        self._registry = SessionRegistry(
            self._log,
            self._aggregator,
            retention=self._retention,
            finalize_on_disconnect=bool(streaming_config.get("finalize_on_disconnect", False)),
        )
        self._dispatcher = Dispatcher(
            self._aggregator,
            self.llm_engine,
            self.tts_engine,
            self._log,
            pipeline=self.pipeline,
            prompt_template=llm_config.get("prompt_template") or PROMPT_TEMPLATE,
            system_prompt=llm_config.get("system_prompt") or DEFAULT_SYSTEM_PROMPT,
            llm_options={"model": llm_config.get("model"), "temperature": llm_config.get("temperature")},
            tts_options={
                "voice": tts_config.get("voice"),
                "model": tts_config.get("model"),
                "format": tts_config.get("format"),
            },
        )
        logger.info("InterviewEngine components built")

    @property
    def log(self) -> TranscriptLog:
        self.build()
        return self._log

    @property
    def aggregator(self) -> ChunkAggregator:
        self.build()
        return self._aggregator

    @property
    def registry(self) -> SessionRegistry:
        self.build()
        return self._registry

    @property
    def dispatcher(self) -> Dispatcher:
        self.build()
        return self._dispatcher

    @property
    def retention(self) -> RetentionPolicy:
        self.build()
        return self._retention

    # Connection loop

    async def handle_connection(
        self,
        websocket_adapter: WebSocketAdapter,
        session_id: Optional[str] = None,
        connection_id: Optional[str] = None
    ) -> None:
        """
        Serve one long-lived connection until the client disconnects.

        Args:
            websocket_adapter: Framework-specific WebSocket adapter
            session_id: Transcript session, defaults to the connection id
            connection_id: Transport connection id, generated when omitted
        """
        registry = self.registry
        connection_id = connection_id or uuid.uuid4().hex

        await websocket_adapter.accept_connection()
        connection = await registry.connect(connection_id, websocket_adapter, session_id=session_id)
        websocket_adapter.send(ready_message(connection_id, connection.session_id))

        try:
            while websocket_adapter.is_connected:
                message = await websocket_adapter.receive_message()
                if message is None:
                    break
                if isinstance(message, bytes):
                    registry.push_fragment(connection_id, message)
                else:
                    self._handle_message(connection, websocket_adapter, message)
        except asyncio.CancelledError:
            logger.info(f"Connection loop cancelled: {connection_id}")
            raise
        except Exception as e:
            logger.error(f"Connection {connection_id} error: {e}", exc_info=True)
            websocket_adapter.send(error_message(Stage.SERVER, str(e)))
        finally:
            await registry.disconnect(connection_id)
            await websocket_adapter.close()

    def _handle_message(
        self,
        connection: Connection,
        channel: WebSocketAdapter,
        message: Dict[str, Any]
    ) -> None:
        """Route one client message. Provider work runs in background tasks."""
        message_type = message.get("type")
        want_speech = bool(message.get("want_speech", message.get("wantTTS", False)))

        if message_type == "interview:audio_chunk":
            audio = self._decode_audio(message, channel)
            if audio:
                self.registry.push_fragment(connection.connection_id, audio)

        elif message_type == "interview:audio_end":
            self._spawn(self.registry.end_capture(connection.connection_id), channel)

        elif message_type == "interview:audio":
            audio = self._decode_audio(message, channel)
            if audio is None:
                return
            self._spawn(self.dispatcher.ask_question(
                connection.session_id,
                audio=audio,
                want_speech=want_speech,
                channel=channel,
                source="websocket",
                mimetype=message.get("mimetype"),
            ), channel)

        elif message_type == "interview:question":
            self._spawn(self.dispatcher.ask_question(
                connection.session_id,
                text=message.get("text"),
                want_speech=want_speech,
                channel=channel,
                source="websocket",
            ), channel)

        elif message_type == "ping":
            channel.send({"type": "pong"})

        else:
            logger.warning(f"Unsupported message type from {connection.connection_id}: {message_type}")
            channel.send(error_message(Stage.SERVER, f"Unsupported message type: {message_type}"))

    @staticmethod
    def _decode_audio(message: Dict[str, Any], channel: WebSocketAdapter) -> Optional[bytes]:
        encoded = message.get("audio_base64", message.get("audioBase64"))
        if not encoded:
            return b""
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError, TypeError):
            channel.send(error_message(Stage.SERVER, "Invalid audio_base64 payload"))
            return None

    def _spawn(self, coro, channel: WebSocketAdapter) -> asyncio.Task:
        """Run provider work without blocking the receive loop."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._tasks.discard(finished)
            if finished.cancelled():
                return
            error = finished.exception()
            if isinstance(error, InvalidTransitionError):
                logger.debug(f"Dropped work for closed connection: {error}")
                return
            # Provider errors have already been reported on the channel
            if error is not None and not isinstance(error, ProviderError):
                logger.error(f"Background task failed: {error}", exc_info=error)
                channel.send(error_message(Stage.SERVER, str(error)))

        task.add_done_callback(_done)
        return task

    async def ask_question(self, session_id: Optional[str] = None, **kwargs: Any):
        """Stateless question/answer exchange, see Dispatcher.ask_question."""
        return await self.dispatcher.ask_question(session_id, **kwargs)

    async def wait_idle(self) -> None:
        """Wait for background exchanges, pruning and pending writes to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self._registry is not None:
            await self._retention.wait()
            await self._log.flush()

    async def shutdown(self) -> None:
        """Close every connection, drain background work and close the store."""
        if self._registry is None:
            return
        await self._registry.close_all()
        await self.wait_idle()
        await self._log.close()
        logger.info("InterviewEngine shut down")

    def get_status(self) -> Dict[str, Any]:
        """Current engine configuration and load."""
        return {
            "stt": getattr(self.stt_engine, "name", None),
            "llm": getattr(self.llm_engine, "name", None),
            "tts": getattr(self.tts_engine, "name", None),
            "transcript_store": getattr(self.transcript_store, "name", None),
            "active_connections": self._registry.active_count if self._registry else 0,
            "active_streams": self._aggregator.active_streams if self._aggregator else 0,
            "background_tasks": len(self._tasks),
            "middleware_count": self.pipeline.middleware_count,
        }
