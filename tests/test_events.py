"""Unit tests for the event bus and performance metrics."""

from meetingmind.core.orchestration.events import EventBus, EventType
from meetingmind.core.orchestration.metrics import PerformanceMetrics
from meetingmind.core.orchestration.types import StrategyKind


class TestEventBus:
    """Test publish, subscribe and drain."""

    def test_publish_delivers_to_subscriber(self):
        bus = EventBus()
        received = []
        bus.subscribe(received.append)

        event = bus.publish(EventType.JOB_STARTED, {"job_id": "ai_1"})

        assert received == [event]
        assert event.payload == {"job_id": "ai_1"}

    def test_subscription_filters_by_type(self):
        bus = EventBus()
        received = []
        bus.subscribe(received.append, {EventType.JOB_FAILED})

        bus.publish(EventType.JOB_STARTED)
        bus.publish(EventType.JOB_FAILED)

        assert [e.type for e in received] == [EventType.JOB_FAILED]

    def test_failing_handler_does_not_block_others(self):
        """A raising subscriber is logged and skipped."""
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        bus.publish(EventType.BUDGET_EXCEEDED)

        assert len(received) == 1

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        bus.subscribe(received.append)
        bus.unsubscribe(received.append)

        bus.publish(EventType.JOB_STARTED)

        assert received == []

    def test_drain_by_type_keeps_others(self):
        bus = EventBus()
        bus.publish(EventType.JOB_STARTED)
        bus.publish(EventType.PROVIDER_FAILED)
        bus.publish(EventType.JOB_COMPLETED)

        failed = bus.drain(EventType.PROVIDER_FAILED)

        assert len(failed) == 1
        assert bus.pending() == 2
        assert [e.type for e in bus.drain()] == [EventType.JOB_STARTED, EventType.JOB_COMPLETED]
        assert bus.pending() == 0

    def test_buffer_is_bounded(self):
        bus = EventBus(buffer_size=3)
        for _ in range(5):
            bus.publish(EventType.JOB_STARTED)

        assert bus.pending() == 3


class TestPerformanceMetrics:
    """Test rolling request metrics."""

    def test_record_updates_averages(self):
        metrics = PerformanceMetrics()

        metrics.record(100.0, success=True, strategy=StrategyKind.SINGLE, confidence=0.8)
        metrics.record(300.0, success=False, strategy=StrategyKind.SINGLE)

        snapshot = metrics.snapshot()
        assert snapshot["total_requests"] == 2
        assert snapshot["successful_requests"] == 1
        assert snapshot["success_rate"] == 0.5
        assert snapshot["average_response_time_ms"] == 200.0
        assert snapshot["average_confidence"] == 0.8
        assert snapshot["by_strategy"] == {"single": {"total": 2, "succeeded": 1}}

    def test_recent_window_is_bounded(self):
        metrics = PerformanceMetrics(window=2)
        for duration in (100.0, 200.0, 400.0):
            metrics.record(duration, success=True)

        assert metrics.snapshot()["recent_average_response_time_ms"] == 300.0

    def test_reset(self):
        metrics = PerformanceMetrics()
        metrics.record(50.0, success=True)

        metrics.reset()

        assert metrics.total_requests == 0
        assert metrics.success_rate == 0.0
