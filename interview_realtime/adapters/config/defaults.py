"""
Default configuration shared by every configuration provider.

Providers overlay their own values on these sections, so the engine always
sees a complete section.
"""

import copy
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "stt": {
        "provider": "whisper",
        "language": None,
        "mimetype": "audio/webm",
        "whisper_model": "whisper-1",
        "deepgram_model": "nova-2",
        "openai_api_key": None,
        "deepgram_api_key": None,
        "timeout": 60.0,
    },
    "llm": {
        "provider": "openai",
        "model": None,
        "temperature": 0.7,
        "system_prompt": None,
        "openai_api_key": None,
        "ollama_base_url": "http://localhost:11434",
        "timeout": 60.0,
    },
    "tts": {
        "provider": "elevenlabs",
        "voice": None,
        "model": None,
        "format": "mp3",
        "openai_api_key": None,
        "elevenlabs_api_key": None,
        "timeout": 60.0,
    },
    "transcripts": {
        "backend": "memory",
        "directory": "transcripts",
        "mongodb_uri": None,
        "mongodb_db": "ai_interview_test_tool",
        "mongodb_collection": "transcripts",
        "max_sessions": 500,
    },
    "streaming": {
        "debounce_ms": 400,
        "finalize_on_disconnect": False,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 8000,
        "api_key": None,
        "log_file": "logs/interview_server.log",
        "log_level": "INFO",
        "cors_origins": ["*"],
    },
}


def _coerce(value: Any, default: Any) -> Any:
    """Convert string values (env vars, ``${VAR}`` substitutions) to the default's type."""
    if not isinstance(value, str) or default is None or isinstance(default, str):
        return value
    try:
        if isinstance(default, bool):
            return value.strip().lower() in ("true", "1", "yes", "on")
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
        if isinstance(default, list):
            return [item.strip() for item in value.split(",") if item.strip()]
    except ValueError as e:
        logger.warning(f"Invalid configuration value '{value}': {e}, using default: {default}")
        return default
    return value


def with_defaults(section: str, values: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay ``values`` on the defaults of ``section``."""
    defaults = DEFAULT_CONFIG.get(section, {})
    merged = copy.deepcopy(defaults)
    for key, value in (values or {}).items():
        if value == "":
            value = None
        merged[key] = _coerce(value, defaults.get(key))
    return merged
