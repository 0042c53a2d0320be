"""In-process event channel.

The engine publishes job lifecycle, provider failure and budget events
here. Notification delivery (email, WebSocket, ...) subscribes from the
outside, or polls with ``drain``.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    JOB_STARTED = "job_started"
    JOB_COMPLETED = "job_completed"
    JOB_FAILED = "job_failed"
    PROVIDER_FAILED = "provider_failed"
    BUDGET_EXCEEDED = "budget_exceeded"
    METRICS_RESET = "metrics_reset"


@dataclass(frozen=True)
class OrchestrationEvent:
    type: EventType
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())


EventHandler = Callable[[OrchestrationEvent], None]


class EventBus:
    """Publish/subscribe channel with a bounded polling buffer."""

    def __init__(self, buffer_size: int = 1000):
        self._handlers: list[tuple[EventHandler, frozenset[EventType] | None]] = []
        self._buffer: deque[OrchestrationEvent] = deque(maxlen=buffer_size)
        self._lock = threading.Lock()

    def subscribe(
        self,
        handler: EventHandler,
        event_types: set[EventType] | None = None,
    ) -> None:
        """Register a handler, optionally for a subset of event types."""
        with self._lock:
            self._handlers.append((handler, frozenset(event_types) if event_types else None))

    def unsubscribe(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers = [(h, t) for h, t in self._handlers if h != handler]

    def publish(self, event_type: EventType, payload: dict[str, Any] | None = None) -> OrchestrationEvent:
        """Buffer an event and deliver it to matching subscribers."""
        event = OrchestrationEvent(type=event_type, payload=payload or {})
        with self._lock:
            self._buffer.append(event)
            handlers = list(self._handlers)

        for handler, types in handlers:
            if types is not None and event_type not in types:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event_type.value)

        return event

    def drain(self, event_type: EventType | None = None) -> list[OrchestrationEvent]:
        """Remove and return buffered events, optionally of one type."""
        with self._lock:
            if event_type is None:
                events = list(self._buffer)
                self._buffer.clear()
                return events

            events = [e for e in self._buffer if e.type == event_type]
            remaining = [e for e in self._buffer if e.type != event_type]
            self._buffer.clear()
            self._buffer.extend(remaining)
            return events

    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)
