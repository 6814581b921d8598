"""
Base middleware implementation.

Provides common functionality for exchange middleware plugins.
"""

import logging

from ...core.interfaces import ExchangeContext, ExchangeHandler, ExchangeMiddleware

logger = logging.getLogger(__name__)


class BaseMiddleware(ExchangeMiddleware):
    """
    Base implementation of exchange middleware with pre/post/error hooks.
    """

    def __init__(self, name: str = "base"):
        self.name = name
        self.enabled = True

    async def process(self, context: ExchangeContext, next_middleware: ExchangeHandler) -> ExchangeContext:
        if not self.enabled:
            return await next_middleware(context)

        try:
            await self._pre_process(context)
            result_context = await next_middleware(context)
            await self._post_process(result_context)
            return result_context
        except Exception as e:
            await self._handle_error(context, e)
            raise

    # Hooks to be implemented by subclasses

    async def _pre_process(self, context: ExchangeContext) -> None:
        pass

    async def _post_process(self, context: ExchangeContext) -> None:
        pass

    async def _handle_error(self, context: ExchangeContext, error: Exception) -> None:
        logger.error(f"Error in middleware '{self.name}': {error}")

    def enable(self) -> None:
        self.enabled = True
        logger.debug(f"Middleware '{self.name}' enabled")

    def disable(self) -> None:
        self.enabled = False
        logger.debug(f"Middleware '{self.name}' disabled")
