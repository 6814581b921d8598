"""
Real-time Interview Practice Library

A framework-agnostic library that orchestrates interview practice sessions
between a client and pluggable Speech-to-Text, text generation and
Text-to-Speech providers, over a long-lived WebSocket connection or plain
request/response calls, while keeping a transcript of every session.
"""

from .core.engine import InterviewEngine
from .core.dispatcher import AskResult, PLACEHOLDER_QUESTION
from .core.errors import InterviewError, ProviderError, PersistenceError
from .core.interfaces import (
    Capability,
    EventType,
    Stage,
    TranscriptionResult,
    GenerationResult,
    SynthesisResult,
    STTEngine,
    LLMEngine,
    TTSEngine,
    TranscriptStore,
    WebSocketAdapter,
    ExchangeMiddleware,
    ConfigurationProvider
)

__version__ = "0.1.0"
__description__ = "Framework-agnostic real-time interview practice orchestration"

__all__ = [
    "InterviewEngine",
    "AskResult",
    "PLACEHOLDER_QUESTION",
    "InterviewError",
    "ProviderError",
    "PersistenceError",
    "Capability",
    "EventType",
    "Stage",
    "TranscriptionResult",
    "GenerationResult",
    "SynthesisResult",
    "STTEngine",
    "LLMEngine",
    "TTSEngine",
    "TranscriptStore",
    "WebSocketAdapter",
    "ExchangeMiddleware",
    "ConfigurationProvider"
]
