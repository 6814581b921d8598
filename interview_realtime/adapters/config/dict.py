"""
Dictionary-based configuration provider.

Provides configuration from Python dictionaries, useful for testing
and programmatic configuration.
"""

import logging
from typing import Any, Dict, Optional

from .defaults import with_defaults
from ...core.interfaces import ConfigurationProvider

logger = logging.getLogger(__name__)


class DictConfigurationProvider(ConfigurationProvider):
    """Dictionary-based configuration provider."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize dictionary configuration provider.

        Args:
            config: Configuration dictionary keyed by section
        """
        self._config = dict(config) if config else {}
        logger.debug(f"Dictionary configuration initialized with {len(self._config)} keys")

    def _get_nested_value(self, key_path: str, default: Any = None) -> Any:
        """Get value from nested configuration using dot notation."""
        current: Any = self._config
        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def _section(self, name: str) -> Dict[str, Any]:
        return with_defaults(name, self._get_nested_value(name, {}))

    def get_stt_config(self) -> Dict[str, Any]:
        return self._section("stt")

    def get_llm_config(self) -> Dict[str, Any]:
        return self._section("llm")

    def get_tts_config(self) -> Dict[str, Any]:
        return self._section("tts")

    def get_transcripts_config(self) -> Dict[str, Any]:
        return self._section("transcripts")

    def get_streaming_config(self) -> Dict[str, Any]:
        return self._section("streaming")

    def get_server_config(self) -> Dict[str, Any]:
        return self._section("server")

    # Programmatic configuration

    def set_value(self, key_path: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key_path: Dot-separated key path
            value: Value to set
        """
        keys = key_path.split('.')
        current = self._config
        for key in keys[:-1]:
            current = current.setdefault(key, {})
        current[keys[-1]] = value
        logger.debug(f"Set config value: {key_path}")

    def get_value(self, key_path: str, default: Any = None) -> Any:
        return self._get_nested_value(key_path, default)


def create_test_config(**sections: Dict[str, Any]) -> DictConfigurationProvider:
    """Offline configuration: echo generator, in-memory transcripts, short debounce."""
    config: Dict[str, Any] = {
        "llm": {"provider": "echo"},
        "transcripts": {"backend": "memory"},
        "streaming": {"debounce_ms": 50},
    }
    for name, values in sections.items():
        config.setdefault(name, {}).update(values)
    return DictConfigurationProvider(config)
