"""
Base TTS engine implementation.
"""

import logging
from typing import Any, Dict, List, Optional

from ..http import HTTPProvider
from ...core.errors import ProviderError
from ...core.interfaces import Stage, SynthesisResult

logger = logging.getLogger(__name__)

FORMAT_MIME_TYPES = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "flac": "audio/flac",
    "oga": "audio/ogg",
    "opus": "audio/ogg",
    "aac": "audio/aac",
}


class BaseTTSEngine(HTTPProvider):
    """
    Base implementation of a TTS engine.

    Subclasses implement ``_synthesize_impl``.
    """

    stage = Stage.TTS

    def __init__(self, base_url: str, api_key: Optional[str] = None, voice: Optional[str] = None,
                 model: Optional[str] = None, format: str = "mp3", **kwargs: Any):
        super().__init__(base_url, api_key=api_key, **kwargs)
        self.voice = voice
        self.model = model
        self.format = format

    async def synthesize(
        self,
        text: str,
        voice: Optional[str] = None,
        model: Optional[str] = None,
        format: Optional[str] = None
    ) -> SynthesisResult:
        """
        Synthesize text to encoded audio.

        Args:
            text: Text to synthesize
            voice: Voice name or id, defaults to the configured one
            model: Model id, defaults to the configured one
            format: Output container, defaults to the configured one

        Returns:
            Synthesis result with audio bytes and MIME type
        """
        if not text or not text.strip():
            raise ProviderError("Empty text provided for synthesis", self.stage, provider=self.name)

        return await self._synthesize_impl(
            text,
            voice or self.voice,
            model or self.model,
            format or self.format,
        )

    async def _synthesize_impl(self, text: str, voice: Optional[str], model: Optional[str],
                               format: str) -> SynthesisResult:
        raise NotImplementedError

    async def list_voices(self) -> List[Dict[str, Any]]:
        return []

    @staticmethod
    def mime_type_for(format: str) -> str:
        return FORMAT_MIME_TYPES.get(format, "audio/mpeg")

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({"voice": self.voice, "model": self.model, "format": self.format})
        return config
