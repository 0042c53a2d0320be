"""Model Orchestration Engine.

Public entry point. For each analysis request the engine:
1. Picks a dispatch strategy
2. Runs it through the Dispatcher
3. Synthesizes the collected results
4. Records cost, metrics and job lifecycle events
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from types import MappingProxyType
from typing import Any, Mapping

from meetingmind.core.orchestration.adapters.registry import ProviderRegistry
from meetingmind.core.orchestration.config import OrchestrationSettings
from meetingmind.core.orchestration.cost_tracker import CostTracker
from meetingmind.core.orchestration.dispatcher import Dispatcher
from meetingmind.core.orchestration.errors import InvalidRequest, OrchestrationFailed, StrategyError
from meetingmind.core.orchestration.events import EventBus, EventType
from meetingmind.core.orchestration.metrics import PerformanceMetrics
from meetingmind.core.orchestration.strategy import select_strategy
from meetingmind.core.orchestration.synthesizer import ResultSynthesizer
from meetingmind.core.orchestration.types import (
    AnalysisRequest,
    Job,
    JobStatus,
    OrchestrationResult,
)

logger = logging.getLogger(__name__)


def generate_job_id() -> str:
    return f"ai_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class OrchestrationEngine:
    """Facade wiring strategy selection, dispatch, synthesis and accounting.

    The engine owns Job records and the cost tracker's windows. Both the
    tracker and the metrics accumulator are injected so tests can use
    isolated instances.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        settings: OrchestrationSettings | None = None,
        cost_tracker: CostTracker | None = None,
        events: EventBus | None = None,
        metrics: PerformanceMetrics | None = None,
    ):
        self._settings = settings or OrchestrationSettings()
        self._registry = registry
        self.events = events or EventBus()
        self.cost_tracker = cost_tracker or CostTracker(
            daily_limit=self._settings.daily_cost_limit,
            monthly_limit=self._settings.monthly_cost_limit,
            total_limit=self._settings.total_cost_limit,
            events=self.events,
        )
        self.metrics = metrics or PerformanceMetrics(window=self._settings.response_time_window)

        self._dispatcher = Dispatcher(
            registry,
            events=self.events,
            timeout_seconds=self._settings.provider_timeout_seconds,
            early_exit_confidence=self._settings.early_exit_confidence,
            min_consensus_results=self._settings.min_consensus_results,
            default_provider=self._settings.default_provider,
            quality_provider=self._settings.quality_provider,
        )
        self._synthesizer = ResultSynthesizer(
            invoke=self._dispatcher.attempt,
            arbitrators=self._settings.arbitrators,
            confidence_aggregate=self._settings.parallel_confidence_aggregate,
            consensus_bonus=self._settings.consensus_bonus,
            consensus_cap=self._settings.consensus_cap,
            preview_chars=self._settings.alternative_preview_chars,
            candidate_chars=self._settings.arbitration_candidate_chars,
        )
        self._jobs: dict[str, Job] = {}

    @classmethod
    def from_settings(cls, settings: OrchestrationSettings | None = None) -> OrchestrationEngine:
        """Build an engine with adapters for every configured provider."""
        settings = settings or OrchestrationSettings()
        return cls(ProviderRegistry.from_settings(settings), settings=settings)

    @property
    def active_jobs(self) -> Mapping[str, Job]:
        return MappingProxyType(dict(self._jobs))

    async def process(self, request: AnalysisRequest) -> OrchestrationResult:
        """Run one analysis request to completion.

        Raises:
            InvalidRequest: ``request`` is not an AnalysisRequest
            OrchestrationFailed: the selected strategy could not produce a result
        """
        if not isinstance(request, AnalysisRequest):
            raise InvalidRequest(f"expected AnalysisRequest, got {type(request).__name__}")

        strategy = select_strategy(request)
        job = Job(
            job_id=generate_job_id(),
            task_type=request.task_type,
            strategy=strategy,
            start_time=time.monotonic(),
            tenant_id=request.tenant_id,
        )
        self._jobs[job.job_id] = job
        logger.info(
            "Job %s started: task=%s strategy=%s",
            job.job_id,
            request.task_type.value,
            strategy.value,
        )
        self.events.publish(EventType.JOB_STARTED, self._job_payload(job))

        try:
            outcome = await self._dispatcher.dispatch(request, strategy)
            result = await self._synthesizer.synthesize(outcome, request)

        except StrategyError as e:
            duration_ms = self._finish(job, JobStatus.FAILED)
            self.metrics.record(duration_ms, success=False, strategy=strategy)
            logger.error("Job %s failed after %.0fms: %s", job.job_id, duration_ms, e)
            self.events.publish(
                EventType.JOB_FAILED,
                {
                    **self._job_payload(job),
                    "error": str(e),
                    "providers_tried": e.providers_tried,
                    "providers_succeeded": e.providers_succeeded,
                    "duration_ms": duration_ms,
                },
            )
            raise OrchestrationFailed(e, job_id=job.job_id) from e

        except (Exception, asyncio.CancelledError) as e:
            # Cancellation and unexpected errors still count against the metrics
            duration_ms = self._finish(job, JobStatus.FAILED)
            self.metrics.record(duration_ms, success=False, strategy=strategy)
            self.events.publish(
                EventType.JOB_FAILED,
                {**self._job_payload(job), "error": repr(e), "duration_ms": duration_ms},
            )
            raise

        duration_ms = self._finish(job, JobStatus.COMPLETED)
        result = result.model_copy(
            update={
                "job_id": job.job_id,
                "task_type": request.task_type,
                "duration_ms": duration_ms,
            }
        )

        self._record_costs(result)
        self.metrics.record(duration_ms, success=True, strategy=strategy, confidence=result.confidence)
        logger.info(
            "Job %s completed in %.0fms: confidence=%.3f cost=%.6f from %d results",
            job.job_id,
            duration_ms,
            result.confidence,
            result.total_cost,
            result.synthesized_from_count,
        )
        self.events.publish(
            EventType.JOB_COMPLETED,
            {
                **self._job_payload(job),
                "duration_ms": duration_ms,
                "confidence": result.confidence,
                "total_cost": result.total_cost,
                "synthesized_from": result.synthesized_from_count,
            },
        )
        return result

    async def process_batch(
        self,
        requests: list[AnalysisRequest],
        concurrency: int = 5,
    ) -> list[OrchestrationResult | OrchestrationFailed]:
        """Process many requests; one failure never aborts the batch.

        Results are returned in request order.
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        semaphore = asyncio.Semaphore(concurrency)

        async def run(request: AnalysisRequest) -> OrchestrationResult | OrchestrationFailed:
            async with semaphore:
                try:
                    return await self.process(request)
                except OrchestrationFailed as e:
                    return e

        return list(await asyncio.gather(*(run(r) for r in requests)))

    def _finish(self, job: Job, status: JobStatus) -> float:
        job.status = status
        self._jobs.pop(job.job_id, None)
        return (time.monotonic() - job.start_time) * 1000

    def _record_costs(self, result: OrchestrationResult) -> None:
        charged = list(result.contributing_results)
        if result.arbitration_result is not None:
            charged.append(result.arbitration_result)
        for provider_result in charged:
            self.cost_tracker.record_cost(provider_result.cost_units, provider_result.provider_id)

    @staticmethod
    def _job_payload(job: Job) -> dict[str, Any]:
        return {
            "job_id": job.job_id,
            "task_type": job.task_type.value,
            "strategy": job.strategy.value,
            "status": job.status.value,
            "tenant_id": job.tenant_id,
        }

    def reset_metrics(self) -> None:
        self.metrics.reset()
        self.events.publish(EventType.METRICS_RESET, {})

    def get_status(self) -> dict[str, Any]:
        return {
            "active_jobs": len(self._jobs),
            "available_providers": self._registry.provider_ids,
            "costs": self.cost_tracker.snapshot(),
            "performance": self.metrics.snapshot(),
        }
