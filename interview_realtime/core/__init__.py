"""Core components of the interview orchestration library."""

from .aggregator import ChunkAggregator, StreamError, StreamTranscript
from .dispatcher import PLACEHOLDER_QUESTION, AskResult, Dispatcher
from .engine import InterviewEngine
from .errors import (
    InterviewError, InvalidTransitionError, PersistenceError, ProviderConfigurationError,
    ProviderError
)
from .interfaces import (
    Capability, ConfigurationProvider, ConnectionState, EventType, ExchangeContext,
    ExchangeMiddleware, GenerationResult, LLMEngine, OutboundChannel, Stage, STTEngine,
    SynthesisResult, TranscriptionResult, TranscriptionSegment, TranscriptStore, TTSEngine,
    WebSocketAdapter
)
from .models import Event, Session, SessionSummary
from .pipeline import ExchangePipeline
from .providers import ProviderRegistry
from .registry import Connection, SessionRegistry
from .retention import RetentionPolicy
from .transcript_log import TranscriptLog

__all__ = [
    "InterviewEngine",
    "ChunkAggregator",
    "StreamTranscript",
    "StreamError",
    "Dispatcher",
    "AskResult",
    "PLACEHOLDER_QUESTION",
    "SessionRegistry",
    "Connection",
    "TranscriptLog",
    "RetentionPolicy",
    "ExchangePipeline",
    "ProviderRegistry",
    "InterviewError",
    "ProviderError",
    "ProviderConfigurationError",
    "PersistenceError",
    "InvalidTransitionError",
    "Capability",
    "Stage",
    "EventType",
    "ConnectionState",
    "STTEngine",
    "LLMEngine",
    "TTSEngine",
    "TranscriptStore",
    "OutboundChannel",
    "WebSocketAdapter",
    "ConfigurationProvider",
    "ExchangeContext",
    "ExchangeMiddleware",
    "TranscriptionResult",
    "TranscriptionSegment",
    "GenerationResult",
    "SynthesisResult",
    "Event",
    "Session",
    "SessionSummary"
]
