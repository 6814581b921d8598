"""Configuration providers for the interview library."""

from .defaults import DEFAULT_CONFIG, with_defaults
from .dict import DictConfigurationProvider, create_test_config
from .env import EnvConfigurationProvider
from .yaml import YAMLConfigurationProvider

__all__ = [
    "DEFAULT_CONFIG",
    "with_defaults",
    "YAMLConfigurationProvider",
    "DictConfigurationProvider",
    "EnvConfigurationProvider",
    "create_test_config"
]
