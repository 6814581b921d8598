"""
Logging middleware for the exchange pipeline.

Logs every question/answer exchange as one structured line on start, on
completion and on failure.
"""

import json
import logging
from typing import Any, Dict

from .base import BaseMiddleware
from ...core.errors import ProviderError
from ...core.interfaces import ExchangeContext
from ...core.models import utc_now

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseMiddleware):
    """Middleware that logs exchanges."""

    def __init__(
        self,
        log_level: int = logging.INFO,
        log_text: bool = True,
        max_text_length: int = 100
    ):
        """
        Initialize logging middleware.

        Args:
            log_level: Logging level for exchange logs
            log_text: Whether to log question and reply text
            max_text_length: Maximum text length to log (truncated if longer)
        """
        super().__init__(name="logging")
        self.log_level = log_level
        self.log_text = log_text
        self.max_text_length = max_text_length

        self.exchange_logger = logging.getLogger(f"{__name__}.exchange")

        logger.info(f"Logging middleware initialized: level={logging.getLevelName(log_level)}")

    async def _pre_process(self, context: ExchangeContext) -> None:
        if not self.exchange_logger.isEnabledFor(self.log_level):
            return

        log_data: Dict[str, Any] = {
            "event": "exchange_start",
            "timestamp": utc_now().isoformat(),
            "session_id": context.session_id,
            "source": context.source,
            "has_audio": context.has_audio,
            "want_speech": context.want_speech,
        }
        if self.log_text and context.question_text:
            log_data["question"] = self._truncate_text(context.question_text)

        self.exchange_logger.log(self.log_level, f"Exchange started: {json.dumps(log_data, default=str)}")

    async def _post_process(self, context: ExchangeContext) -> None:
        if not self.exchange_logger.isEnabledFor(self.log_level):
            return

        log_data: Dict[str, Any] = {
            "event": "exchange_complete",
            "timestamp": utc_now().isoformat(),
            "session_id": context.session_id,
            "providers": context.providers,
            "speech_bytes": context.speech.size_bytes if context.speech else 0,
        }
        if self.log_text:
            log_data["received"] = self._truncate_text(context.received_text)
            log_data["reply"] = self._truncate_text(context.reply_text)
        if "timing_total" in context.metadata:
            log_data["total_ms"] = round(context.metadata["timing_total"] * 1000, 2)

        self.exchange_logger.log(self.log_level, f"Exchange complete: {json.dumps(log_data, default=str)}")

    async def _handle_error(self, context: ExchangeContext, error: Exception) -> None:
        error_data = {
            "event": "exchange_error",
            "timestamp": utc_now().isoformat(),
            "session_id": context.session_id,
            "source": context.source,
            "error_type": type(error).__name__,
            "error_message": str(error),
        }
        if isinstance(error, ProviderError):
            # Expected failure mode, already reported to the client
            error_data["stage"] = error.stage.value
            self.exchange_logger.warning(f"Exchange failed: {json.dumps(error_data, default=str)}")
        else:
            self.exchange_logger.error(f"Exchange error: {json.dumps(error_data, default=str)}", exc_info=True)

    def _truncate_text(self, text) -> str:
        if not text:
            return ""
        if len(text) <= self.max_text_length:
            return text
        return text[:self.max_text_length - 3] + "..."

    def get_config(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "log_level": logging.getLevelName(self.log_level),
            "log_text": self.log_text,
            "max_text_length": self.max_text_length,
        }


def create_logging_middleware_from_config(config: Dict[str, Any]) -> LoggingMiddleware:
    """
    Create logging middleware from configuration.

    Args:
        config: Configuration dictionary (``log_level``, ``log_text``, ``max_text_length``)
    """
    log_level_name = config.get("log_level") or "INFO"
    log_level = getattr(logging, str(log_level_name).upper(), logging.INFO)

    return LoggingMiddleware(
        log_level=log_level,
        log_text=config.get("log_text", True),
        max_text_length=config.get("max_text_length", 100),
    )
