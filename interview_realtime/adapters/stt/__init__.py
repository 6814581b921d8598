"""Speech-to-Text engine adapters."""

from .base import BaseSTTEngine
from .deepgram import DeepgramSTTEngine, create_deepgram_engine_from_config
from .whisper import WhisperSTTEngine, create_whisper_engine_from_config

__all__ = [
    "BaseSTTEngine",
    "WhisperSTTEngine",
    "DeepgramSTTEngine",
    "create_whisper_engine_from_config",
    "create_deepgram_engine_from_config"
]
