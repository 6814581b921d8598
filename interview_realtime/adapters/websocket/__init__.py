"""WebSocket framework adapters."""

from .base import BaseWebSocketAdapter
from .fastapi import FastAPIWebSocketAdapter

__all__ = [
    "FastAPIWebSocketAdapter",
    "BaseWebSocketAdapter"
]
