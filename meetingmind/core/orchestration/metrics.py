"""Rolling performance metrics for the engine."""

from __future__ import annotations

import threading
from collections import deque
from typing import Any

from meetingmind.core.orchestration.types import StrategyKind


class PerformanceMetrics:
    """Request counters and latency averages.

    ``record`` may be called from concurrent ``process`` calls; all
    updates happen under one lock so none are lost.
    """

    def __init__(self, window: int = 100):
        self._lock = threading.Lock()
        self._window = window
        self._reset_locked()

    def _reset_locked(self) -> None:
        self.total_requests = 0
        self.successful_requests = 0
        self.average_response_time = 0.0
        self.average_confidence = 0.0
        self._recent: deque[float] = deque(maxlen=self._window)
        self._by_strategy: dict[str, dict[str, int]] = {}

    def record(
        self,
        duration_ms: float,
        success: bool,
        strategy: StrategyKind | None = None,
        confidence: float | None = None,
    ) -> None:
        with self._lock:
            self.total_requests += 1
            n = self.total_requests
            # Cumulative moving average
            self.average_response_time += (duration_ms - self.average_response_time) / n
            self._recent.append(duration_ms)

            if success:
                self.successful_requests += 1
                if confidence is not None:
                    self.average_confidence += (
                        confidence - self.average_confidence
                    ) / self.successful_requests

            if strategy is not None:
                counts = self._by_strategy.setdefault(strategy.value, {"total": 0, "succeeded": 0})
                counts["total"] += 1
                if success:
                    counts["succeeded"] += 1

    @property
    def success_rate(self) -> float:
        with self._lock:
            return self.successful_requests / self.total_requests if self.total_requests else 0.0

    def reset(self) -> None:
        with self._lock:
            self._reset_locked()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            recent = list(self._recent)
            return {
                "total_requests": self.total_requests,
                "successful_requests": self.successful_requests,
                "success_rate": (
                    self.successful_requests / self.total_requests if self.total_requests else 0.0
                ),
                "average_response_time_ms": round(self.average_response_time, 3),
                "recent_average_response_time_ms": (
                    round(sum(recent) / len(recent), 3) if recent else 0.0
                ),
                "average_confidence": round(self.average_confidence, 6),
                "by_strategy": {k: dict(v) for k, v in self._by_strategy.items()},
            }
