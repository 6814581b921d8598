"""
WebSocket adapter for FastAPI/Starlette connections.

Audio arrives either as binary frames or inside JSON text frames, so the
adapter reads raw ASGI messages instead of ``receive_json``.
"""

import logging
from typing import Any, Dict, Optional, Union

from fastapi import WebSocket, WebSocketDisconnect

from .base import BaseWebSocketAdapter

logger = logging.getLogger(__name__)


class FastAPIWebSocketAdapter(BaseWebSocketAdapter):
    """Binds a FastAPI ``WebSocket`` to the engine's connection loop."""

    def __init__(self, websocket: WebSocket):
        super().__init__()
        self.websocket = websocket

    async def _accept_connection_impl(self) -> None:
        await self.websocket.accept()

    async def _receive_data(self) -> Optional[Union[bytes, str]]:
        try:
            frame = await self.websocket.receive()
        except (WebSocketDisconnect, RuntimeError) as e:
            # Starlette raises RuntimeError when receiving after the disconnect frame
            logger.debug(f"Receive on finished connection: {e!r}")
            self._is_connected = False
            return None

        if frame["type"] == "websocket.disconnect":
            logger.debug(f"Client disconnected with code {frame.get('code')}")
            self._is_connected = False
            return None

        if frame.get("bytes") is not None:
            return frame["bytes"]
        return frame.get("text") or ""

    async def _send_json_impl(self, data: Dict[str, Any]) -> None:
        await self.websocket.send_json(data)

    async def _close_connection_impl(self, code: int) -> None:
        await self.websocket.close(code)

    def get_client_info(self) -> Dict[str, Any]:
        client = self.websocket.client
        return {
            "client": f"{client.host}:{client.port}" if client else None,
            "path": self.websocket.url.path,
            "session_id": self.websocket.query_params.get("session_id"),
        }
