"""Cost and quota tracking.

Provides:
- Daily, monthly and all-time spend counters (``BudgetWindow``)
- Per-provider spend breakdown
- Advisory budget checks for an upstream admission layer
- One ``budget_exceeded`` event per window crossing
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from meetingmind.core.orchestration.events import EventBus, EventType

logger = logging.getLogger(__name__)

# Float sums of fractional costs land just under the limit (10 x 0.1 == 0.9999999999999999)
COST_TOLERANCE = 1e-9


class BudgetScope(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    TOTAL = "total"


def _window_key(scope: BudgetScope, now: datetime) -> str:
    if scope == BudgetScope.DAILY:
        return now.date().isoformat()
    if scope == BudgetScope.MONTHLY:
        return f"{now.year:04d}-{now.month:02d}"
    return "all"


@dataclass
class BudgetWindow:
    """Rolling cost counter for one scope."""

    scope: BudgetScope
    limit: float | None
    accumulated_cost: float = 0.0
    window_key: str = ""
    alerted: bool = False
    by_provider: dict[str, float] = field(default_factory=dict)

    def roll(self, now: datetime) -> bool:
        """Reset the counter if a wall-clock boundary has passed."""
        key = _window_key(self.scope, now)
        if key == self.window_key:
            return False
        rolled = bool(self.window_key)
        self.window_key = key
        self.accumulated_cost = 0.0
        self.alerted = False
        self.by_provider.clear()
        return rolled

    @property
    def remaining(self) -> float | None:
        if self.limit is None:
            return None
        return self.limit - self.accumulated_cost

    @property
    def exceeded(self) -> bool:
        return self.limit is not None and self.accumulated_cost >= self.limit - COST_TOLERANCE

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope": self.scope.value,
            "window": self.window_key,
            "accumulated_cost": round(self.accumulated_cost, 6),
            "limit": self.limit,
            "remaining": round(self.remaining, 6) if self.remaining is not None else None,
            "exceeded": self.exceeded,
            "by_provider": {k: round(v, 6) for k, v in self.by_provider.items()},
        }


class CostTracker:
    """Accumulates spend and flags budget crossings.

    Safe to share between concurrent ``process`` calls: every mutation
    happens under one lock. Events are published after the lock is
    released so subscribers may read the tracker.
    """

    def __init__(
        self,
        daily_limit: float = 100.0,
        monthly_limit: float = 2000.0,
        total_limit: float | None = None,
        events: EventBus | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        alert_scopes: tuple[BudgetScope, ...] = (BudgetScope.DAILY, BudgetScope.MONTHLY),
    ):
        self._clock = clock
        self._events = events
        self._alert_scopes = alert_scopes
        self._lock = threading.Lock()
        self._windows: dict[BudgetScope, BudgetWindow] = {
            BudgetScope.DAILY: BudgetWindow(BudgetScope.DAILY, daily_limit),
            BudgetScope.MONTHLY: BudgetWindow(BudgetScope.MONTHLY, monthly_limit),
            BudgetScope.TOTAL: BudgetWindow(BudgetScope.TOTAL, total_limit),
        }
        now = clock()
        for window in self._windows.values():
            window.roll(now)

    def _roll_all(self) -> None:
        now = self._clock()
        for window in self._windows.values():
            if window.roll(now):
                logger.info("%s budget window reset (%s)", window.scope.value, window.window_key)

    def record_cost(self, amount: float, provider_id: str | None = None) -> list[BudgetScope]:
        """Add spend to every window.

        Returns:
            Scopes whose limit was crossed by this call
        """
        if amount < 0:
            raise ValueError("cost amount must be non-negative")

        crossed: list[tuple[BudgetScope, dict[str, Any]]] = []
        with self._lock:
            self._roll_all()
            for window in self._windows.values():
                window.accumulated_cost += amount
                if provider_id:
                    window.by_provider[provider_id] = window.by_provider.get(provider_id, 0.0) + amount

                if window.scope in self._alert_scopes and window.exceeded and not window.alerted:
                    window.alerted = True
                    crossed.append((window.scope, window.to_dict()))

        for scope, snapshot in crossed:
            logger.warning(
                "%s budget exceeded: %.4f of %.4f",
                scope.value,
                snapshot["accumulated_cost"],
                snapshot["limit"],
            )
            if self._events is not None:
                self._events.publish(EventType.BUDGET_EXCEEDED, snapshot)

        return [scope for scope, _ in crossed]

    def check_budget(self, scope: BudgetScope = BudgetScope.DAILY, estimated_cost: float = 0.0) -> bool:
        """Advisory: True while the scope has room for ``estimated_cost``."""
        with self._lock:
            self._roll_all()
            window = self._windows[scope]
            if window.limit is None:
                return True
            return window.accumulated_cost + estimated_cost < window.limit - COST_TOLERANCE

    def window(self, scope: BudgetScope) -> BudgetWindow:
        """Current window for a scope (a copy; mutate only via ``record_cost``)."""
        with self._lock:
            self._roll_all()
            source = self._windows[scope]
            return BudgetWindow(
                scope=source.scope,
                limit=source.limit,
                accumulated_cost=source.accumulated_cost,
                window_key=source.window_key,
                alerted=source.alerted,
                by_provider=dict(source.by_provider),
            )

    def spent(self, scope: BudgetScope = BudgetScope.DAILY) -> float:
        return self.window(scope).accumulated_cost

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            self._roll_all()
            return {scope.value: window.to_dict() for scope, window in self._windows.items()}
