"""
Whisper STT engine using the OpenAI audio transcription API.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseSTTEngine
from ...core.interfaces import TranscriptionResult, TranscriptionSegment

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"

_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp4": "mp4",
    "audio/flac": "flac",
}


class WhisperSTTEngine(BaseSTTEngine):
    """OpenAI Whisper transcription."""

    name = "whisper"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "whisper-1",
        language: Optional[str] = None,
        base_url: str = OPENAI_BASE_URL,
        **kwargs: Any
    ):
        super().__init__(base_url, api_key=api_key, language=language, model=model, **kwargs)
        logger.info(f"Whisper STT engine initialized: model={model}")

    async def _transcribe_impl(self, audio: bytes, language: Optional[str], mimetype: str) -> TranscriptionResult:
        api_key = self._require_api_key("OPENAI_API_KEY")

        base_type = mimetype.split(";")[0].strip()
        filename = f"audio.{_EXTENSIONS.get(base_type, 'webm')}"
        data = {"model": self.model, "response_format": "verbose_json"}
        if language:
            data["language"] = language

        response = await self._post(
            "/audio/transcriptions",
            headers={"Authorization": f"Bearer {api_key}"},
            data=data,
            files={"file": (filename, audio, base_type)},
        )
        body = self._json(response, self.name, self.stage)

        segments = [
            TranscriptionSegment(
                text=seg.get("text", "").strip(),
                start=float(seg.get("start", 0.0)),
                end=float(seg.get("end", 0.0)),
            )
            for seg in body.get("segments") or []
        ]
        text = (body.get("text") or "").strip()
        logger.debug(f"Whisper transcribed {len(audio)} bytes -> '{text[:50]}'")
        return TranscriptionResult(
            text=text,
            provider=self.name,
            segments=segments,
            language=body.get("language", language),
        )


def create_whisper_engine_from_config(config: Dict[str, Any]) -> WhisperSTTEngine:
    return WhisperSTTEngine(
        api_key=config.get("openai_api_key"),
        model=config.get("whisper_model") or "whisper-1",
        language=config.get("language"),
        base_url=config.get("openai_base_url") or OPENAI_BASE_URL,
        timeout=config.get("timeout", 60.0),
        transport=config.get("transport"),
    )
