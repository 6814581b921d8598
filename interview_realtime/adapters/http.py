"""
Shared HTTP plumbing for hosted provider adapters.

Every adapter talks to its provider through ``httpx.AsyncClient``. Transport
failures and non-2xx responses are turned into stage-tagged ProviderError.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.errors import ProviderConfigurationError, ProviderError
from ..core.interfaces import Stage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class HTTPProvider:
    """Base class for adapters backed by a REST API."""

    name = "http"
    stage = Stage.SERVER

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or None
        self.timeout = timeout
        self.transport = transport

    def _require_api_key(self, setting: str) -> str:
        """Credentials are checked per call so other providers keep working."""
        if not self.api_key:
            raise ProviderConfigurationError(
                f"Missing {setting} for {self.name}", self.stage, provider=self.name
            )
        return self.api_key

    async def _post(self, path: str, headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> httpx.Response:
        """POST to the provider and return a successful response."""
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} request to {url} failed: {e}")
            raise ProviderError(
                f"{self.name} request failed: {e}", self.stage, provider=self.name
            ) from e

        if response.status_code >= 400:
            logger.error(f"{self.name} returned {response.status_code}: {response.text[:200]}")
            raise ProviderError(
                f"{self.name} request failed: {response.status_code} {response.text}",
                self.stage,
                provider=self.name,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response, provider: str, stage: Stage) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{provider} returned invalid JSON", stage, provider=provider) from e

    def get_config(self) -> Dict[str, Any]:
        return {
            "provider": self.name,
            "base_url": self.base_url,
            "api_key_set": bool(self.api_key),
            "timeout": self.timeout,
        }
