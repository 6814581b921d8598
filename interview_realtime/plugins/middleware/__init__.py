"""Middleware plugins for the exchange pipeline."""

from .base import BaseMiddleware
from .logging import LoggingMiddleware, create_logging_middleware_from_config
from .timing import TimingMiddleware

__all__ = [
    "LoggingMiddleware",
    "TimingMiddleware",
    "BaseMiddleware",
    "create_logging_middleware_from_config"
]
