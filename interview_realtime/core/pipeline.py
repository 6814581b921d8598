"""
Exchange processing pipeline with middleware support.
"""

import logging
from typing import Awaitable, Callable, Dict, List

from .interfaces import ExchangeContext, ExchangeHandler, ExchangeMiddleware

logger = logging.getLogger(__name__)

ExchangeListener = Callable[[str, ExchangeContext], Awaitable[None]]


class ExchangePipeline:
    """
    Runs question/answer exchanges through a middleware chain.

    Exchanges from different sessions may run concurrently; the pipeline
    keeps no per-exchange state of its own.
    """

    def __init__(self):
        self.middleware: List[ExchangeMiddleware] = []
        self._listeners: Dict[str, List[ExchangeListener]] = {}
        self._active = 0

    def add_middleware(self, middleware: ExchangeMiddleware) -> None:
        """Add middleware to the pipeline."""
        self.middleware.append(middleware)
        logger.debug(f"Added middleware: {type(middleware).__name__}")

    def subscribe(self, event_name: str, listener: ExchangeListener) -> None:
        """Subscribe to ``exchange_start``, ``exchange_complete`` or ``exchange_error``."""
        self._listeners.setdefault(event_name, []).append(listener)

    async def _notify(self, event_name: str, context: ExchangeContext) -> None:
        for listener in self._listeners.get(event_name, []):
            try:
                await listener(event_name, context)
            except Exception as e:
                logger.error(f"Error in {event_name} listener: {e}")

    async def process(self, context: ExchangeContext, core_processor: ExchangeHandler) -> ExchangeContext:
        """
        Process exchange context through the middleware chain.

        Args:
            context: Exchange context to process
            core_processor: Core processing function (STT -> LLM -> TTS)

        Returns:
            Processed context; a failure is stored on ``context.error``
        """
        self._active += 1
        try:
            await self._notify("exchange_start", context)

            chain: ExchangeHandler = core_processor

            # Wrap in reverse order so the first added middleware runs outermost
            for middleware in reversed(self.middleware):
                async def middleware_wrapper(
                    ctx: ExchangeContext,
                    mw: ExchangeMiddleware = middleware,
                    next_func: ExchangeHandler = chain
                ) -> ExchangeContext:
                    return await mw.process(ctx, next_func)

                chain = middleware_wrapper

            result = await chain(context)
            await self._notify("exchange_complete", result)
            return result

        except Exception as e:
            context.error = e
            await self._notify("exchange_error", context)
            return context
        finally:
            self._active -= 1

    @property
    def active_exchanges(self) -> int:
        return self._active

    @property
    def middleware_count(self) -> int:
        return len(self.middleware)
