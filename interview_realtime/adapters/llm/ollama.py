"""
Ollama engine for locally hosted models.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseLLMEngine
from ...core.interfaces import GenerationResult

logger = logging.getLogger(__name__)

OLLAMA_BASE_URL = "http://localhost:11434"


class OllamaLLMEngine(BaseLLMEngine):
    """Non-streaming ``/api/generate`` calls against a local Ollama server."""

    name = "ollama"

    def __init__(
        self,
        base_url: str = OLLAMA_BASE_URL,
        model: str = "llama3",
        temperature: float = 0.7,
        **kwargs: Any
    ):
        super().__init__(base_url, model=model, temperature=temperature, **kwargs)
        logger.info(f"Ollama LLM engine initialized: {base_url} model={model}")

    async def _generate_impl(self, prompt: str, model: Optional[str], temperature: float,
                             system: Optional[str]) -> GenerationResult:
        payload: Dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": temperature},
        }
        if system:
            payload["system"] = system

        response = await self._post("/api/generate", json=payload)
        body = self._json(response, self.name, self.stage)

        usage = {
            key: body[key]
            for key in ("prompt_eval_count", "eval_count", "total_duration")
            if key in body
        }
        return GenerationResult(
            text=body.get("response") or "",
            provider=self.name,
            model=body.get("model", model),
            usage=usage,
        )


def create_ollama_llm_from_config(config: Dict[str, Any]) -> OllamaLLMEngine:
    return OllamaLLMEngine(
        base_url=config.get("ollama_base_url") or OLLAMA_BASE_URL,
        model=config.get("model") or "llama3",
        temperature=config.get("temperature", 0.7),
        timeout=config.get("timeout", 120.0),
        transport=config.get("transport"),
    )
