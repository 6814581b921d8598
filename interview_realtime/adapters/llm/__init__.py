"""Text generation engine adapters."""

from .base import BaseLLMEngine
from .echo import EchoLLMEngine, create_echo_llm_from_config
from .ollama import OllamaLLMEngine, create_ollama_llm_from_config
from .openai import OpenAILLMEngine, create_openai_llm_from_config

__all__ = [
    "BaseLLMEngine",
    "OpenAILLMEngine",
    "OllamaLLMEngine",
    "EchoLLMEngine",
    "create_openai_llm_from_config",
    "create_ollama_llm_from_config",
    "create_echo_llm_from_config"
]
