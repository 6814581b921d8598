"""Plugins for the interview library."""

from .middleware import BaseMiddleware, LoggingMiddleware, TimingMiddleware

__all__ = [
    "BaseMiddleware",
    "LoggingMiddleware",
    "TimingMiddleware"
]
