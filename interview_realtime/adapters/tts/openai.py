"""
OpenAI speech synthesis engine.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseTTSEngine
from ...core.interfaces import SynthesisResult

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"

OPENAI_VOICES = ["alloy", "echo", "fable", "onyx", "nova", "shimmer"]


class OpenAITTSEngine(BaseTTSEngine):
    """``/v1/audio/speech`` synthesis."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        voice: str = "alloy",
        model: str = "tts-1",
        format: str = "mp3",
        base_url: str = OPENAI_BASE_URL,
        **kwargs: Any
    ):
        super().__init__(base_url, api_key=api_key, voice=voice, model=model, format=format, **kwargs)
        logger.info(f"OpenAI TTS engine initialized: model={model} voice={voice}")

    async def _synthesize_impl(self, text: str, voice: Optional[str], model: Optional[str],
                               format: str) -> SynthesisResult:
        api_key = self._require_api_key("OPENAI_API_KEY")

        response = await self._post(
            "/audio/speech",
            headers={"Authorization": f"Bearer {api_key}"},
            json={"model": model, "input": text, "voice": voice, "response_format": format},
        )
        return SynthesisResult(
            audio=response.content,
            mime_type=self.mime_type_for(format),
            provider=self.name,
        )

    async def list_voices(self):
        return [{"id": voice, "name": voice} for voice in OPENAI_VOICES]


def create_openai_tts_from_config(config: Dict[str, Any]) -> OpenAITTSEngine:
    return OpenAITTSEngine(
        api_key=config.get("openai_api_key"),
        voice=config.get("voice") or "alloy",
        model=config.get("model") or "tts-1",
        format=config.get("format") or "mp3",
        base_url=config.get("openai_base_url") or OPENAI_BASE_URL,
        timeout=config.get("timeout", 60.0),
        transport=config.get("transport"),
    )
