"""
Base WebSocket adapter implementation.

Outbound messages go through a per-connection queue drained by a sender task,
so producers (the aggregator sink, the dispatcher) never wait on the socket.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from ...core.interfaces import WebSocketAdapter

logger = logging.getLogger(__name__)

CLOSE_TIMEOUT = 5.0


class BaseWebSocketAdapter(WebSocketAdapter):
    """
    Base implementation of WebSocket adapter with common functionality.

    Subclasses should implement the framework-specific methods.
    """

    def __init__(self):
        self._is_connected = False
        self._outbox: "asyncio.Queue[Optional[Dict[str, Any]]]" = asyncio.Queue()
        self._sender: Optional[asyncio.Task] = None

    async def accept_connection(self) -> None:
        """Accept the WebSocket connection and start the sender task."""
        await self._accept_connection_impl()
        self._is_connected = True
        self._sender = asyncio.get_running_loop().create_task(self._send_loop())
        logger.debug("WebSocket connection accepted")

    def send(self, message: Dict[str, Any]) -> None:
        """Queue a JSON message; dropped once the connection is gone."""
        if not self._is_connected:
            logger.debug(f"Dropping {message.get('type')} for closed connection")
            return
        self._outbox.put_nowait(message)

    async def _send_loop(self) -> None:
        while True:
            message = await self._outbox.get()
            if message is None:
                break
            try:
                await self._send_json_impl(message)
            except Exception as e:
                logger.error(f"Error sending JSON data: {e}")
                self._is_connected = False
                break

    async def receive_message(self) -> Optional[Any]:
        """
        Receive the next client message.

        Returns:
            bytes for binary frames, a dict for JSON text frames, an empty dict
            for unparseable text, or None once the client has disconnected
        """
        data = await self._receive_data()
        if data is None:
            return None
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)

        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.warning(f"Invalid JSON message: {data[:100]}")
            return {}

        if not isinstance(message, dict):
            logger.warning(f"Ignoring non-object JSON message: {type(message).__name__}")
            return {}
        return message

    async def close(self, code: int = 1000) -> None:
        """Deliver already queued messages, then close the connection."""
        if self._sender is not None and not self._sender.done():
            self._outbox.put_nowait(None)
            done, _ = await asyncio.wait({self._sender}, timeout=CLOSE_TIMEOUT)
            if not done:
                self._sender.cancel()

        if self._is_connected:
            try:
                await self._close_connection_impl(code)
            except Exception as e:
                logger.debug(f"Error closing connection: {e}")
        self._is_connected = False
        logger.debug("WebSocket connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if WebSocket is connected."""
        return self._is_connected

    # Abstract methods to be implemented by subclasses

    async def _accept_connection_impl(self) -> None:
        raise NotImplementedError

    async def _receive_data(self) -> Optional[Any]:
        """Return bytes, text, or None on disconnect."""
        raise NotImplementedError

    async def _send_json_impl(self, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def _close_connection_impl(self, code: int) -> None:
        raise NotImplementedError
