"""
Deepgram STT engine using the prerecorded transcription REST API.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseSTTEngine
from ...core.interfaces import TranscriptionResult, TranscriptionSegment

logger = logging.getLogger(__name__)

DEEPGRAM_BASE_URL = "https://api.deepgram.com/v1"


class DeepgramSTTEngine(BaseSTTEngine):
    """Deepgram prerecorded transcription."""

    name = "deepgram"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "nova-2",
        language: Optional[str] = "en",
        smart_format: bool = True,
        base_url: str = DEEPGRAM_BASE_URL,
        **kwargs: Any
    ):
        super().__init__(base_url, api_key=api_key, language=language, model=model, **kwargs)
        self.smart_format = smart_format
        logger.info(f"Deepgram STT engine initialized: model={model}")

    async def _transcribe_impl(self, audio: bytes, language: Optional[str], mimetype: str) -> TranscriptionResult:
        api_key = self._require_api_key("DEEPGRAM_API_KEY/STT_API_KEY")

        params = {
            "model": self.model,
            "smart_format": "true" if self.smart_format else "false",
            "language": language or "en",
        }
        response = await self._post(
            "/listen",
            headers={"Authorization": f"Token {api_key}", "Content-Type": mimetype},
            params=params,
            content=audio,
        )
        body = self._json(response, self.name, self.stage)

        channels = (body.get("results") or {}).get("channels") or [{}]
        alternatives = channels[0].get("alternatives") or [{}]
        best = alternatives[0]

        segments = [
            TranscriptionSegment(
                text=word.get("punctuated_word") or word.get("word", ""),
                start=float(word.get("start", 0.0)),
                end=float(word.get("end", 0.0)),
                confidence=word.get("confidence"),
            )
            for word in best.get("words") or []
        ]
        return TranscriptionResult(
            text=best.get("transcript") or "",
            provider=self.name,
            segments=segments,
            language=language,
        )


def create_deepgram_engine_from_config(config: Dict[str, Any]) -> DeepgramSTTEngine:
    return DeepgramSTTEngine(
        api_key=config.get("deepgram_api_key"),
        model=config.get("deepgram_model") or "nova-2",
        language=config.get("language") or "en",
        base_url=config.get("deepgram_base_url") or DEEPGRAM_BASE_URL,
        timeout=config.get("timeout", 60.0),
        transport=config.get("transport"),
    )
