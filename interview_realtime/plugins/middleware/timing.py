"""
Timing middleware for the exchange pipeline.

Measures total exchange time and the per-stage provider times the dispatcher
records under ``metadata["timing_stages"]``.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from .base import BaseMiddleware
from ...core.interfaces import ExchangeContext

logger = logging.getLogger(__name__)

MAX_STORED_TIMES = 1000


class TimingMiddleware(BaseMiddleware):
    """Middleware that measures and tracks processing times."""

    def __init__(self, log_timing: bool = True, log_threshold_ms: float = 1000.0):
        """
        Initialize timing middleware.

        Args:
            log_timing: Whether to log slow exchanges
            log_threshold_ms: Log an exchange when it takes at least this long
        """
        super().__init__(name="timing")
        self.log_timing = log_timing
        self.log_threshold_ms = log_threshold_ms

        self.total_requests = 0
        self.total_processing_time = 0.0
        self.min_processing_time: Optional[float] = None
        self.max_processing_time: Optional[float] = None
        self.stage_times: Dict[str, List[float]] = {"stt": [], "llm": [], "tts": [], "total": []}

        logger.info(f"Timing middleware initialized: threshold={log_threshold_ms}ms")

    async def _pre_process(self, context: ExchangeContext) -> None:
        context.metadata["timing_start"] = time.perf_counter()
        context.metadata.setdefault("timing_stages", {})

    async def _post_process(self, context: ExchangeContext) -> None:
        start_time = context.metadata.get("timing_start")
        if start_time is None:
            return

        total_time = time.perf_counter() - start_time
        context.metadata["timing_total"] = total_time
        self._update_statistics(total_time, context.metadata.get("timing_stages", {}))

        if self.log_timing and total_time * 1000 >= self.log_threshold_ms:
            stages_ms = {
                stage: round(value * 1000, 2)
                for stage, value in context.metadata.get("timing_stages", {}).items()
            }
            logger.info(
                f"Slow exchange ({context.source}, session {context.session_id}): "
                f"{total_time * 1000:.1f}ms {stages_ms}"
            )

    def _update_statistics(self, total_time: float, stages: Dict[str, float]) -> None:
        self.total_requests += 1
        self.total_processing_time += total_time

        if self.min_processing_time is None or total_time < self.min_processing_time:
            self.min_processing_time = total_time
        if self.max_processing_time is None or total_time > self.max_processing_time:
            self.max_processing_time = total_time

        self.stage_times["total"].append(total_time)
        for stage, stage_time in stages.items():
            if stage in self.stage_times:
                self.stage_times[stage].append(stage_time)

        # Bound memory
        for stage, times in self.stage_times.items():
            if len(times) > MAX_STORED_TIMES:
                self.stage_times[stage] = times[-MAX_STORED_TIMES // 2:]

    def get_statistics(self) -> Dict[str, Any]:
        """Get timing statistics in milliseconds."""
        def average_ms(values: List[float]) -> Optional[float]:
            return round(sum(values) / len(values) * 1000, 2) if values else None

        return {
            "total_requests": self.total_requests,
            "average_ms": average_ms(self.stage_times["total"]),
            "min_ms": round(self.min_processing_time * 1000, 2) if self.min_processing_time is not None else None,
            "max_ms": round(self.max_processing_time * 1000, 2) if self.max_processing_time is not None else None,
            "stages_average_ms": {
                stage: average_ms(times) for stage, times in self.stage_times.items() if stage != "total"
            },
        }

    def reset_statistics(self) -> None:
        self.total_requests = 0
        self.total_processing_time = 0.0
        self.min_processing_time = None
        self.max_processing_time = None
        for times in self.stage_times.values():
            times.clear()
