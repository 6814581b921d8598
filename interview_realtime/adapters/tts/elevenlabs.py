"""
ElevenLabs speech synthesis engine.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseTTSEngine
from ...core.errors import ProviderConfigurationError
from ...core.interfaces import SynthesisResult

logger = logging.getLogger(__name__)

ELEVENLABS_BASE_URL = "https://api.elevenlabs.io/v1"


class ElevenLabsTTSEngine(BaseTTSEngine):
    """``/v1/text-to-speech/{voice_id}`` synthesis, always MP3."""

    name = "elevenlabs"

    def __init__(
        self,
        api_key: Optional[str] = None,
        voice: Optional[str] = None,
        model: str = "eleven_monolingual_v1",
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        base_url: str = ELEVENLABS_BASE_URL,
        **kwargs: Any
    ):
        super().__init__(base_url, api_key=api_key, voice=voice, model=model, format="mp3", **kwargs)
        self.stability = stability
        self.similarity_boost = similarity_boost
        logger.info(f"ElevenLabs TTS engine initialized: model={model}")

    async def _synthesize_impl(self, text: str, voice: Optional[str], model: Optional[str],
                               format: str) -> SynthesisResult:
        api_key = self._require_api_key("ELEVENLABS_API_KEY/TTS_API_KEY")
        if not voice:
            raise ProviderConfigurationError(
                "Missing TTS_VOICE (voice ID) for elevenlabs", self.stage, provider=self.name
            )

        response = await self._post(
            f"/text-to-speech/{voice}",
            headers={"xi-api-key": api_key, "accept": "audio/mpeg"},
            json={
                "text": text,
                "model_id": model,
                "voice_settings": {
                    "stability": self.stability,
                    "similarity_boost": self.similarity_boost,
                },
            },
        )
        return SynthesisResult(audio=response.content, mime_type="audio/mpeg", provider=self.name)


def create_elevenlabs_tts_from_config(config: Dict[str, Any]) -> ElevenLabsTTSEngine:
    return ElevenLabsTTSEngine(
        api_key=config.get("elevenlabs_api_key"),
        voice=config.get("voice"),
        model=config.get("model") or "eleven_monolingual_v1",
        stability=config.get("stability", 0.5),
        similarity_boost=config.get("similarity_boost", 0.75),
        base_url=config.get("elevenlabs_base_url") or ELEVENLABS_BASE_URL,
        timeout=config.get("timeout", 60.0),
        transport=config.get("transport"),
    )
