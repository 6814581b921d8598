"""Framework, provider and storage adapters for the interview library."""

from .config import DictConfigurationProvider, EnvConfigurationProvider, YAMLConfigurationProvider
from .providers import default_provider_registry
from .store import create_transcript_store
from .websocket import FastAPIWebSocketAdapter

__all__ = [
    "FastAPIWebSocketAdapter",
    "YAMLConfigurationProvider",
    "DictConfigurationProvider",
    "EnvConfigurationProvider",
    "default_provider_registry",
    "create_transcript_store"
]
