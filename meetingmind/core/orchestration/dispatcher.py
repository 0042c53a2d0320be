"""Strategy execution against provider adapters.

Each ``StrategyKind`` has one handler, registered in a table at
construction. Every handler moves through the same states:
selecting providers -> invoking -> collecting -> done | failed.

Provider failures are recovered here: they are logged, published as
``provider_failed`` events, counted, and excluded from the outcome. A
strategy only raises when its minimum number of successes is not met.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from meetingmind.core.orchestration.adapters.registry import ProviderRegistry
from meetingmind.core.orchestration.errors import (
    AllProvidersFailed,
    InsufficientConsensusData,
    ProviderError,
    ProviderUnavailable,
)
from meetingmind.core.orchestration.events import EventBus, EventType
from meetingmind.core.orchestration.strategy import ProviderPlanner
from meetingmind.core.orchestration.types import (
    AnalysisRequest,
    ProviderConfig,
    ProviderResult,
    StrategyKind,
)

logger = logging.getLogger(__name__)


@dataclass
class DispatchOutcome:
    """Everything a strategy collected, ready for synthesis."""

    strategy: StrategyKind
    results: list[ProviderResult]
    providers_tried: int
    failures: list[ProviderError] = field(default_factory=list)
    early_exit: bool = False

    @property
    def providers_succeeded(self) -> int:
        return len(self.results)

    @property
    def total_cost(self) -> float:
        # Failed attempts charge zero
        return sum(r.cost_units for r in self.results)


def rank_by_confidence(results: list[ProviderResult]) -> list[ProviderResult]:
    """Descending confidence; ties keep planning order, not completion order."""
    return sorted(results, key=lambda r: r.confidence, reverse=True)


StrategyHandler = Callable[[AnalysisRequest, list[str]], Awaitable[DispatchOutcome]]


class Dispatcher:
    """Runs a dispatch strategy across one or more providers."""

    def __init__(
        self,
        registry: ProviderRegistry,
        events: EventBus | None = None,
        timeout_seconds: float = 30.0,
        early_exit_confidence: float = 0.9,
        min_consensus_results: int = 2,
        default_provider: str = "aimlapi",
        quality_provider: str = "anthropic",
    ):
        self._registry = registry
        self._events = events
        self._timeout = timeout_seconds
        self._early_exit_confidence = early_exit_confidence
        self._min_consensus = min_consensus_results
        self._default_provider = default_provider
        self._quality_provider = quality_provider

        self._handlers: dict[StrategyKind, StrategyHandler] = {
            StrategyKind.SINGLE: self._run_single,
            StrategyKind.SEQUENTIAL: self._run_sequential,
            StrategyKind.PARALLEL: self._run_parallel,
            StrategyKind.CONSENSUS: self._run_consensus,
        }
        missing = set(StrategyKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No dispatch handler for: {sorted(m.value for m in missing)}")

    def planner(self) -> ProviderPlanner:
        return ProviderPlanner(
            available=self._registry.provider_ids,
            default_provider=self._default_provider,
            quality_provider=self._quality_provider,
        )

    async def dispatch(self, request: AnalysisRequest, strategy: StrategyKind) -> DispatchOutcome:
        """Execute ``strategy`` for ``request``.

        Raises:
            AllProvidersFailed: single/sequential/parallel got no result
            InsufficientConsensusData: consensus got too few results
        """
        providers = self.planner().plan(request, strategy)
        logger.debug(
            "Dispatching %s via %s to %s",
            request.task_type.value,
            strategy.value,
            providers,
        )
        return await self._handlers[strategy](request, providers)

    async def attempt(
        self,
        provider_id: str,
        request: AnalysisRequest,
    ) -> ProviderResult | ProviderError:
        """Invoke one provider, returning its failure instead of raising it."""
        try:
            return await self.invoke(provider_id, request)
        except ProviderError as e:
            logger.warning(
                "Provider %s failed (%s): %s",
                provider_id,
                "transient" if e.retryable else "rejected",
                e.detail,
            )
            if self._events is not None:
                self._events.publish(
                    EventType.PROVIDER_FAILED,
                    {
                        "provider_id": provider_id,
                        "task_type": request.task_type.value,
                        "retryable": e.retryable,
                        "error": e.detail,
                    },
                )
            return e

    async def invoke(self, provider_id: str, request: AnalysisRequest) -> ProviderResult:
        """Invoke one provider under its own timeout.

        Raises:
            ProviderError: the call failed, timed out, or the id is unknown
        """
        adapter = self._registry.get_adapter(provider_id)
        config = ProviderConfig.for_task(request.task_type, timeout_seconds=self._timeout)

        try:
            return await asyncio.wait_for(adapter.invoke(request, config), timeout=config.timeout_seconds)
        except asyncio.TimeoutError:
            raise ProviderUnavailable(provider_id, f"timed out after {config.timeout_seconds}s") from None
        except ProviderError:
            raise
        except Exception as e:
            logger.exception("Unexpected error from provider %s", provider_id)
            raise ProviderUnavailable(provider_id, f"{type(e).__name__}: {e}") from e

    async def _fan_out(
        self,
        request: AnalysisRequest,
        providers: list[str],
    ) -> tuple[list[ProviderResult], list[ProviderError]]:
        """Invoke all providers concurrently and wait for every one to settle."""
        tasks = [asyncio.ensure_future(self.attempt(p, request)) for p in providers]
        if not tasks:
            return [], []

        gathered = asyncio.gather(*tasks)
        try:
            # Shielded: an abandoned caller does not cancel calls already paid for
            settled = await asyncio.shield(gathered)
        except asyncio.CancelledError:
            gathered.add_done_callback(
                lambda _: logger.info("Discarded %d provider results for an abandoned request", len(tasks))
            )
            raise

        results = [s for s in settled if isinstance(s, ProviderResult)]
        failures = [s for s in settled if isinstance(s, ProviderError)]
        return rank_by_confidence(results), failures

    async def _run_single(self, request: AnalysisRequest, providers: list[str]) -> DispatchOutcome:
        if not providers:
            raise AllProvidersFailed("No provider available", StrategyKind.SINGLE)

        provider_id = providers[0]
        outcome = await self.attempt(provider_id, request)
        if isinstance(outcome, ProviderError):
            raise AllProvidersFailed(
                f"Provider {provider_id} failed: {outcome.detail}",
                StrategyKind.SINGLE,
                providers_tried=1,
                failures=[outcome],
            )

        return DispatchOutcome(strategy=StrategyKind.SINGLE, results=[outcome], providers_tried=1)

    async def _run_sequential(self, request: AnalysisRequest, providers: list[str]) -> DispatchOutcome:
        results: list[ProviderResult] = []
        failures: list[ProviderError] = []
        early_exit = False

        for provider_id in providers:
            outcome = await self.attempt(provider_id, request)
            if isinstance(outcome, ProviderError):
                failures.append(outcome)
                continue

            results.append(outcome)
            if outcome.confidence > self._early_exit_confidence:
                logger.debug(
                    "Early exit after %s with confidence %.3f",
                    provider_id,
                    outcome.confidence,
                )
                early_exit = True
                break

        tried = len(results) + len(failures)
        if not results:
            raise AllProvidersFailed(
                "All sequential attempts failed",
                StrategyKind.SEQUENTIAL,
                providers_tried=tried,
                failures=failures,
            )

        return DispatchOutcome(
            strategy=StrategyKind.SEQUENTIAL,
            results=rank_by_confidence(results),
            providers_tried=tried,
            failures=failures,
            early_exit=early_exit,
        )

    async def _run_parallel(self, request: AnalysisRequest, providers: list[str]) -> DispatchOutcome:
        results, failures = await self._fan_out(request, providers)

        if not results:
            raise AllProvidersFailed(
                "All parallel attempts failed",
                StrategyKind.PARALLEL,
                providers_tried=len(providers),
                failures=failures,
            )

        return DispatchOutcome(
            strategy=StrategyKind.PARALLEL,
            results=results,
            providers_tried=len(providers),
            failures=failures,
        )

    async def _run_consensus(self, request: AnalysisRequest, providers: list[str]) -> DispatchOutcome:
        results, failures = await self._fan_out(request, providers)

        if len(results) < self._min_consensus:
            raise InsufficientConsensusData(
                f"Consensus requires at least {self._min_consensus} successful results, got {len(results)}",
                StrategyKind.CONSENSUS,
                providers_tried=len(providers),
                providers_succeeded=len(results),
                failures=failures,
            )

        return DispatchOutcome(
            strategy=StrategyKind.CONSENSUS,
            results=results,
            providers_tried=len(providers),
            failures=failures,
        )
