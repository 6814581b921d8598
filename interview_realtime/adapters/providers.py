"""Registry pre-populated with every bundled provider adapter."""

from ..core.interfaces import Capability
from ..core.providers import ProviderRegistry
from .llm import create_echo_llm_from_config, create_ollama_llm_from_config, create_openai_llm_from_config
from .stt import create_deepgram_engine_from_config, create_whisper_engine_from_config
from .tts import create_elevenlabs_tts_from_config, create_openai_tts_from_config


def default_provider_registry() -> ProviderRegistry:
    registry = ProviderRegistry()

    registry.register(Capability.STT, "whisper", create_whisper_engine_from_config)
    registry.register(Capability.STT, "deepgram", create_deepgram_engine_from_config)

    registry.register(Capability.LLM, "openai", create_openai_llm_from_config)
    registry.register(Capability.LLM, "ollama", create_ollama_llm_from_config)
    registry.register(Capability.LLM, "echo", create_echo_llm_from_config)

    registry.register(Capability.TTS, "openai", create_openai_tts_from_config)
    registry.register(Capability.TTS, "elevenlabs", create_elevenlabs_tts_from_config)

    return registry
