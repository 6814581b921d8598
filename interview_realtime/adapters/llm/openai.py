"""
OpenAI chat completions engine.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseLLMEngine
from ...core.interfaces import GenerationResult

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAILLMEngine(BaseLLMEngine):
    """Chat completion with a single system + user turn."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        base_url: str = OPENAI_BASE_URL,
        **kwargs: Any
    ):
        super().__init__(base_url, api_key=api_key, model=model, temperature=temperature, **kwargs)
        logger.info(f"OpenAI LLM engine initialized: model={model}")

    async def _generate_impl(self, prompt: str, model: Optional[str], temperature: float,
                             system: Optional[str]) -> GenerationResult:
        api_key = self._require_api_key("OPENAI_API_KEY")

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = await self._post(
            "/chat/completions",
            headers={"Authorization": f"Bearer {api_key}"},
            json={"model": model, "messages": messages, "temperature": temperature},
        )
        body = self._json(response, self.name, self.stage)

        choices = body.get("choices") or [{}]
        text = ((choices[0].get("message") or {}).get("content")) or ""
        return GenerationResult(
            text=text,
            provider=self.name,
            model=body.get("model", model),
            usage=body.get("usage") or {},
        )


def create_openai_llm_from_config(config: Dict[str, Any]) -> OpenAILLMEngine:
    return OpenAILLMEngine(
        api_key=config.get("openai_api_key"),
        model=config.get("model") or "gpt-4o-mini",
        temperature=config.get("temperature", 0.7),
        base_url=config.get("openai_base_url") or OPENAI_BASE_URL,
        timeout=config.get("timeout", 60.0),
        transport=config.get("transport"),
    )
