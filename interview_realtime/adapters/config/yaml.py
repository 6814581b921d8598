"""
YAML configuration file provider.

Values may reference the environment as ``${VAR}`` or ``${VAR:default}``;
references are expanded once, when the file is read. An unset variable
without a default expands to an empty string, which the section defaults
treat as "not configured".
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .defaults import with_defaults
from ...core.interfaces import ConfigurationProvider

logger = logging.getLogger(__name__)

_ENV_REFERENCE = re.compile(r'\$\{([^}]+)\}')


def expand_env(value: Any) -> Any:
    """Expand ``${VAR[:default]}`` references in every string of a parsed document."""
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if not isinstance(value, str):
        return value

    def lookup(match: "re.Match[str]") -> str:
        name, _, default = match.group(1).partition(':')
        return os.environ.get(name.strip(), default)

    return _ENV_REFERENCE.sub(lookup, value)


class YAMLConfigurationProvider(ConfigurationProvider):
    """Configuration read from one YAML document with a mapping per section."""

    def __init__(self, config_path: Union[str, Path], env_substitution: bool = True):
        """
        Args:
            config_path: Path to the YAML file; a missing file yields defaults only
            env_substitution: Expand ``${VAR}`` references
        """
        self.config_path = Path(config_path)
        self.env_substitution = env_substitution
        self._document: Dict[str, Any] = {}
        self._loaded_mtime: Optional[float] = None

        self.reload_config()

    def reload_config(self) -> None:
        """Re-read the file from disk."""
        if not self.config_path.is_file():
            logger.warning(f"Config file {self.config_path} not found, using defaults")
            self._document = {}
            self._loaded_mtime = None
            return

        document = yaml.safe_load(self.config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(document, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.config_path}")

        self._document = expand_env(document) if self.env_substitution else document
        self._loaded_mtime = self.config_path.stat().st_mtime
        logger.info(f"Loaded {len(self._document)} config sections from {self.config_path}")

    def get_value(self, key_path: str, default: Any = None) -> Any:
        """Look up a dotted path such as ``llm.model``."""
        node: Any = self._document
        for part in key_path.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def _section(self, name: str) -> Dict[str, Any]:
        return with_defaults(name, self.get_value(name) or {})

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

    @property
    def config_exists(self) -> bool:
        return self.config_path.is_file()

    @property
    def last_modified(self) -> Optional[float]:
        return self._loaded_mtime
