"""
Base LLM engine implementation.
"""

import logging
from typing import Any, Dict, Optional

from ..http import HTTPProvider
from ...core.interfaces import GenerationResult, Stage

logger = logging.getLogger(__name__)


class BaseLLMEngine(HTTPProvider):
    """
    Base implementation of a text generation engine.

    Subclasses implement ``_generate_impl``.
    """

    stage = Stage.LLM

    def __init__(self, base_url: str, api_key: Optional[str] = None, model: Optional[str] = None,
                 temperature: float = 0.7, **kwargs: Any):
        super().__init__(base_url, api_key=api_key, **kwargs)
        self.model = model
        self.temperature = temperature

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        system: Optional[str] = None
    ) -> GenerationResult:
        """Generate text, falling back to the configured model and temperature."""
        return await self._generate_impl(
            prompt,
            model or self.model,
            self.temperature if temperature is None else temperature,
            system,
        )

    async def _generate_impl(self, prompt: str, model: Optional[str], temperature: float,
                             system: Optional[str]) -> GenerationResult:
        raise NotImplementedError

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({"model": self.model, "temperature": self.temperature})
        return config
