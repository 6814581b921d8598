"""Text-to-Speech engine adapters."""

from .base import BaseTTSEngine
from .elevenlabs import ElevenLabsTTSEngine, create_elevenlabs_tts_from_config
from .openai import OpenAITTSEngine, create_openai_tts_from_config

__all__ = [
    "BaseTTSEngine",
    "OpenAITTSEngine",
    "ElevenLabsTTSEngine",
    "create_openai_tts_from_config",
    "create_elevenlabs_tts_from_config"
]
