"""
Base STT engine implementation.

Provides common functionality for hosted STT adapters.
"""

import logging
from typing import Any, Dict, Optional

from ..http import HTTPProvider
from ...core.interfaces import Stage, TranscriptionResult

logger = logging.getLogger(__name__)


class BaseSTTEngine(HTTPProvider):
    """
    Base implementation of an STT engine.

    Subclasses implement ``_transcribe_impl``.
    """

    stage = Stage.STT

    def __init__(self, base_url: str, api_key: Optional[str] = None, language: Optional[str] = None,
                 model: Optional[str] = None, **kwargs: Any):
        super().__init__(base_url, api_key=api_key, **kwargs)
        self.language = language
        self.model = model

    async def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        mimetype: Optional[str] = None
    ) -> TranscriptionResult:
        """
        Transcribe an encoded audio blob.

        Args:
            audio: Encoded audio bytes
            language: Target language, defaults to the configured one
            mimetype: MIME type of the audio

        Returns:
            Transcription result; empty audio yields an empty result
        """
        if not audio:
            logger.warning("Empty audio data provided")
            return TranscriptionResult(text="", provider=self.name)

        return await self._transcribe_impl(
            audio,
            language or self.language,
            mimetype or "audio/webm",
        )

    async def _transcribe_impl(self, audio: bytes, language: Optional[str], mimetype: str) -> TranscriptionResult:
        raise NotImplementedError

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({"language": self.language, "model": self.model})
        return config
