"""
Provider registry.

Maps a capability and a provider name to a factory. Providers are resolved
once at startup and injected into the engine.
"""

import logging
from typing import Any, Callable, Dict, List

from .interfaces import Capability

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[Dict[str, Any]], Any]


class ProviderRegistry:
    """Named factories per capability."""

    def __init__(self):
        self._factories: Dict[Capability, Dict[str, ProviderFactory]] = {
            capability: {} for capability in Capability
        }

    def register(self, capability: Capability, name: str, factory: ProviderFactory) -> None:
        self._factories[Capability(capability)][name.lower()] = factory
        logger.debug(f"Registered {Capability(capability).value} provider: {name}")

    def available(self, capability: Capability) -> List[str]:
        return sorted(self._factories[Capability(capability)])

    def create(self, capability: Capability, name: str, config: Dict[str, Any]) -> Any:
        """
        Build a provider from its configuration section.

        Raises:
            ValueError: if no provider of that name is registered
        """
        capability = Capability(capability)
        key = (name or "").lower()
        factory = self._factories[capability].get(key)
        if factory is None:
            available = ", ".join(self.available(capability))
            raise ValueError(f"Unknown {capability.value.upper()} provider: {name}. Available: {available}")

        provider = factory(config)
        logger.info(f"{capability.value.upper()} provider resolved: {key} ({type(provider).__name__})")
        return provider
