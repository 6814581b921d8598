"""
Environment variable-based configuration provider.

Each setting is read from ``{PREFIX}{SECTION}_{KEY}`` (for example
``INTERVIEW_STT_PROVIDER`` with prefix ``INTERVIEW_``). The well-known
variable names used by existing deployments (``OPENAI_API_KEY``,
``MONGODB_URI``, ``TRANSCRIPTS_MAX_FILES``, ...) are honoured as fallbacks.
"""

import logging
import os
from typing import Any, Dict, Optional, Tuple

from .defaults import DEFAULT_CONFIG, with_defaults
from ...core.interfaces import ConfigurationProvider

logger = logging.getLogger(__name__)

# config path -> fallback variable names, checked in order
ENV_ALIASES: Dict[str, Tuple[str, ...]] = {
    "stt.provider": ("STT_PROVIDER",),
    "stt.language": ("STT_LANGUAGE",),
    "stt.whisper_model": ("STT_MODEL",),
    "stt.deepgram_model": ("DEEPGRAM_MODEL",),
    "stt.openai_api_key": ("OPENAI_API_KEY",),
    "stt.deepgram_api_key": ("DEEPGRAM_API_KEY", "STT_API_KEY"),
    "llm.provider": ("LLM_PROVIDER",),
    "llm.model": ("LLM_MODEL",),
    "llm.openai_api_key": ("OPENAI_API_KEY",),
    "llm.ollama_base_url": ("OLLAMA_BASE_URL",),
    "tts.provider": ("TTS_PROVIDER",),
    "tts.voice": ("TTS_VOICE",),
    "tts.model": ("TTS_MODEL",),
    "tts.format": ("TTS_FORMAT",),
    "tts.openai_api_key": ("OPENAI_API_KEY",),
    "tts.elevenlabs_api_key": ("ELEVENLABS_API_KEY", "TTS_API_KEY"),
    "transcripts.backend": ("TRANSCRIPTS_BACKEND",),
    "transcripts.directory": ("TRANSCRIPTS_DIR",),
    "transcripts.mongodb_uri": ("MONGODB_URI",),
    "transcripts.mongodb_db": ("MONGODB_DB",),
    "transcripts.mongodb_collection": ("MONGODB_COLLECTION",),
    "transcripts.max_sessions": ("TRANSCRIPTS_MAX_FILES",),
    "streaming.debounce_ms": ("STREAM_DEBOUNCE_MS",),
    "server.api_key": ("API_KEY",),
    "server.port": ("PORT",),
    "server.host": ("HOST",),
    "server.log_level": ("LOG_LEVEL",),
}


class EnvConfigurationProvider(ConfigurationProvider):
    """Environment variable-based configuration provider."""

    def __init__(
        self,
        prefix: str = "INTERVIEW_",
        separator: str = "_",
        use_aliases: bool = True,
        environ: Optional[Dict[str, str]] = None
    ):
        """
        Initialize environment configuration provider.

        Args:
            prefix: Prefix for environment variables
            separator: Separator between section and key
            use_aliases: Also read the well-known unprefixed names
            environ: Mapping to read instead of ``os.environ``
        """
        self.prefix = prefix
        self.separator = separator
        self.use_aliases = use_aliases
        self._environ = os.environ if environ is None else environ

        logger.debug(
            f"Environment configuration provider initialized: "
            f"prefix='{prefix}', separator='{separator}'"
        )

    def _get_env_key(self, config_path: str) -> str:
        """Convert configuration path to environment variable name."""
        return f"{self.prefix}{config_path.replace('.', self.separator)}".upper()

    def _get_raw_value(self, config_path: str) -> Optional[str]:
        value = self._environ.get(self._get_env_key(config_path))
        if value is not None:
            return value
        if self.use_aliases:
            for alias in ENV_ALIASES.get(config_path, ()):
                value = self._environ.get(alias)
                if value is not None:
                    return value
        return None

    def _build_config_section(self, section: str) -> Dict[str, Any]:
        values = {}
        for key in DEFAULT_CONFIG[section]:
            raw_value = self._get_raw_value(f"{section}.{key}")
            if raw_value is not None:
                values[key] = raw_value
        return with_defaults(section, values)

    def get_stt_config(self) -> Dict[str, Any]:
        return self._build_config_section("stt")

    def get_llm_config(self) -> Dict[str, Any]:
        return self._build_config_section("llm")

    def get_tts_config(self) -> Dict[str, Any]:
        return self._build_config_section("tts")

    def get_transcripts_config(self) -> Dict[str, Any]:
        config = self._build_config_section("transcripts")
        # A configured MongoDB URI selects the mongo backend unless one is named explicitly
        if config.get("mongodb_uri") and self._get_raw_value("transcripts.backend") is None:
            config["backend"] = "mongo"
        return config

    def get_streaming_config(self) -> Dict[str, Any]:
        return self._build_config_section("streaming")

    def get_server_config(self) -> Dict[str, Any]:
        return self._build_config_section("server")

    def list_env_vars(self) -> Dict[str, str]:
        """List all environment variables matching the prefix."""
        return {key: value for key, value in self._environ.items() if key.startswith(self.prefix)}
