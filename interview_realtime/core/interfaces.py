"""
Core interfaces and data models for the interview orchestration library.

This module defines the protocol interfaces that enable dependency injection
and framework-agnostic operation of the interview system: the three provider
capabilities, the transcript store, the outbound channel and the
configuration provider.
"""

from typing import Protocol, List, Dict, Any, Optional, Awaitable, Callable, TYPE_CHECKING, runtime_checkable
from abc import abstractmethod
from dataclasses import dataclass, field
from enum import Enum

if TYPE_CHECKING:
    from .models import Event, Session, SessionSummary


class Capability(str, Enum):
    """Provider capabilities that can be plugged into the engine."""
    STT = "stt"
    LLM = "llm"
    TTS = "tts"


class Stage(str, Enum):
    """Stage tags attached to every error surfaced to a client."""
    STT = "stt"
    LLM = "llm"
    TTS = "tts"
    SERVER = "server"


class EventType(str, Enum):
    """Fixed vocabulary of transcript log events."""
    INTERIM_TRANSCRIPT = "interim-transcript"
    FINAL_TRANSCRIPT = "final-transcript"
    SINGLE_SHOT_TRANSCRIPT = "single-shot-transcript"
    QUESTION_SUBMITTED = "question-submitted"
    REPLY_GENERATED = "reply-generated"
    SPEECH_SYNTHESIZED = "speech-synthesized"
    ERROR = "error"


class ConnectionState(Enum):
    """Lifecycle states of one long-lived client connection."""
    OPEN = "open"
    STREAMING = "streaming"
    CLOSED = "closed"


@dataclass
class TranscriptionSegment:
    """Individual transcription segment with timing information."""

    text: str
    start: float
    end: float
    confidence: Optional[float] = None


@dataclass
class TranscriptionResult:
    """STT transcription result."""

    text: str
    provider: str
    segments: List[TranscriptionSegment] = field(default_factory=list)
    language: Optional[str] = None


@dataclass
class GenerationResult:
    """Text generation result."""

    text: str
    provider: str
    model: Optional[str] = None
    usage: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SynthesisResult:
    """TTS synthesis result with encoded audio."""

    audio: bytes
    mime_type: str
    provider: str

    @property
    def size_bytes(self) -> int:
        return len(self.audio)


# Protocol definitions for dependency injection

@runtime_checkable
class STTEngine(Protocol):
    """Speech-to-Text capability."""

    name: str

    @abstractmethod
    async def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        mimetype: Optional[str] = None
    ) -> TranscriptionResult:
        """
        Transcribe an encoded audio blob to text.

        Args:
            audio: Encoded audio bytes (webm, wav, ...)
            language: Target language code
            mimetype: MIME type of the audio payload

        Returns:
            Transcription result

        Raises:
            ProviderError: on network, auth or quota failures
        """
        ...


@runtime_checkable
class LLMEngine(Protocol):
    """Text generation capability."""

    name: str

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        system: Optional[str] = None
    ) -> GenerationResult:
        """Generate text for a prompt. Raises ProviderError on failure."""
        ...


@runtime_checkable
class TTSEngine(Protocol):
    """Text-to-Speech capability."""

    name: str

    @abstractmethod
    async def synthesize(
        self,
        text: str,
        voice: Optional[str] = None,
        model: Optional[str] = None,
        format: Optional[str] = None
    ) -> SynthesisResult:
        """Synthesize speech for text. Raises ProviderError on failure."""
        ...


@runtime_checkable
class OutboundChannel(Protocol):
    """Server-to-client message channel for one connection."""

    @abstractmethod
    def send(self, message: Dict[str, Any]) -> None:
        """Queue a JSON message for delivery. Never blocks."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the underlying transport is still connected."""
        ...


@runtime_checkable
class WebSocketAdapter(OutboundChannel, Protocol):
    """WebSocket framework adapter interface."""

    @abstractmethod
    async def accept_connection(self) -> None:
        """Accept the WebSocket connection."""
        ...

    @abstractmethod
    async def receive_message(self) -> Optional[Any]:
        """Receive the next client message (dict or bytes), None on disconnect."""
        ...

    @abstractmethod
    async def close(self, code: int = 1000) -> None:
        """Close the WebSocket connection."""
        ...


@runtime_checkable
class TranscriptStore(Protocol):
    """Append-only per-session event store."""

    @abstractmethod
    async def start(self, session_id: str) -> "Session":
        ...

    @abstractmethod
    async def append(
        self,
        session_id: str,
        event_type: EventType,
        payload: Dict[str, Any]
    ) -> "Event":
        ...

    @abstractmethod
    async def end(self, session_id: str) -> Optional["Session"]:
        ...

    @abstractmethod
    async def get(self, session_id: str) -> Optional["Session"]:
        ...

    @abstractmethod
    async def list(self) -> List["SessionSummary"]:
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        ...

    @abstractmethod
    async def prune(self, max_count: int) -> int:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


@dataclass
class ExchangeContext:
    """Context object passed through the exchange middleware pipeline."""

    session_id: Optional[str]
    source: str
    question_text: Optional[str] = None
    has_audio: bool = False
    want_speech: bool = False

    # Processing results
    received_text: Optional[str] = None
    reply_text: Optional[str] = None
    speech: Optional[SynthesisResult] = None
    providers: Dict[str, Optional[str]] = field(default_factory=dict)

    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Exception] = None


ExchangeHandler = Callable[[ExchangeContext], Awaitable[ExchangeContext]]


@runtime_checkable
class ExchangeMiddleware(Protocol):
    """Middleware interface for processing one question/answer exchange."""

    @abstractmethod
    async def process(
        self,
        context: ExchangeContext,
        next_middleware: ExchangeHandler
    ) -> ExchangeContext:
        """
        Process exchange context and call next middleware.

        Args:
            context: Current exchange context
            next_middleware: Next middleware function in the chain

        Returns:
            Modified exchange context
        """
        ...


@runtime_checkable
class ConfigurationProvider(Protocol):
    """Configuration provider interface."""

    @abstractmethod
    def get_stt_config(self) -> Dict[str, Any]:
        """Get STT provider configuration."""
        ...

    @abstractmethod
    def get_llm_config(self) -> Dict[str, Any]:
        """Get text generation provider configuration."""
        ...

    @abstractmethod
    def get_tts_config(self) -> Dict[str, Any]:
        """Get TTS provider configuration."""
        ...

    @abstractmethod
    def get_transcripts_config(self) -> Dict[str, Any]:
        """Get transcript store configuration."""
        ...

    @abstractmethod
    def get_streaming_config(self) -> Dict[str, Any]:
        """Get streaming audio configuration."""
        ...

    @abstractmethod
    def get_server_config(self) -> Dict[str, Any]:
        """Get HTTP server configuration."""
        ...
