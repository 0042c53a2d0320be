"""Merging provider results into one answer.

Modes:
- passthrough: single/sequential, the best result stands as is
- best-of + weighted: parallel, best content with blended confidence
- arbitration: consensus, a second-pass call reconciles the fan-out set
"""

from __future__ import annotations

import json
import logging
from statistics import mean
from typing import Awaitable, Callable, Literal

from pydantic import ValidationError

from meetingmind.core.orchestration.dispatcher import DispatchOutcome
from meetingmind.core.orchestration.errors import ArbitrationFailed, ProviderError
from meetingmind.core.orchestration.types import (
    MAX_CONTENT_LENGTH,
    AlternativeResult,
    AnalysisRequest,
    OrchestrationResult,
    ProviderResult,
    StrategyKind,
    TaskType,
)

logger = logging.getLogger(__name__)

ARBITRATION_INSTRUCTIONS = (
    "Analyze these AI model results and create a consensus response that incorporates "
    "the best insights from each. Highlight areas of agreement and note any significant "
    "disagreements."
)

# Room left in the arbitration request for JSON keys and punctuation
_CANDIDATE_OVERHEAD = 200

Invoker = Callable[[str, AnalysisRequest], Awaitable["ProviderResult | ProviderError"]]


class ResultSynthesizer:
    """Turns a ``DispatchOutcome`` into an ``OrchestrationResult``."""

    def __init__(
        self,
        invoke: Invoker,
        arbitrators: list[str] | None = None,
        confidence_aggregate: Literal["mean", "max"] = "mean",
        consensus_bonus: float = 0.1,
        consensus_cap: float = 0.95,
        preview_chars: int = 500,
        candidate_chars: int = 8000,
    ):
        self._invoke = invoke
        self._arbitrators = arbitrators or ["anthropic", "openai"]
        self._confidence_aggregate = confidence_aggregate
        self._consensus_bonus = consensus_bonus
        self._consensus_cap = consensus_cap
        self._preview_chars = preview_chars
        self._candidate_chars = candidate_chars

    async def synthesize(self, outcome: DispatchOutcome, request: AnalysisRequest) -> OrchestrationResult:
        if outcome.strategy == StrategyKind.CONSENSUS:
            return await self.arbitrate(outcome, request)
        if outcome.strategy == StrategyKind.PARALLEL:
            return self.best_of_weighted(outcome)
        return self.passthrough(outcome)

    def _alternatives(self, results: list[ProviderResult]) -> list[AlternativeResult]:
        return [AlternativeResult.from_result(r, self._preview_chars) for r in results]

    def passthrough(self, outcome: DispatchOutcome) -> OrchestrationResult:
        """Best result stands; cost covers every successful attempt."""
        best = outcome.results[0]
        return OrchestrationResult(
            strategy=outcome.strategy,
            content=best.content,
            confidence=best.confidence,
            total_cost=outcome.total_cost,
            contributing_results=list(outcome.results),
            synthesized_from_count=len(outcome.results),
            alternative_results=self._alternatives(outcome.results[1:]),
            providers_attempted=outcome.providers_tried,
            providers_succeeded=outcome.providers_succeeded,
            cost_unknown=any(r.cost_unknown for r in outcome.results),
        )

    def best_of_weighted(self, outcome: DispatchOutcome) -> OrchestrationResult:
        """Highest-confidence content, blended confidence.

        With the default "mean" aggregate, one confident provider among
        unsure ones pulls the reported confidence down.
        """
        results = outcome.results
        best = results[0]
        confidences = [r.confidence for r in results]
        if self._confidence_aggregate == "max":
            confidence = max(confidences)
        else:
            confidence = mean(confidences)

        return OrchestrationResult(
            strategy=outcome.strategy,
            content=best.content,
            confidence=min(1.0, max(0.0, confidence)),
            total_cost=outcome.total_cost,
            contributing_results=list(results),
            synthesized_from_count=len(results),
            alternative_results=self._alternatives(results[1:]),
            providers_attempted=outcome.providers_tried,
            providers_succeeded=outcome.providers_succeeded,
            cost_unknown=any(r.cost_unknown for r in results),
        )

    def serialize_candidates(self, results: list[ProviderResult]) -> str:
        """JSON candidate list that fits in one request.

        JSON escaping can grow content (a control character becomes a
        six-character escape), so candidates are shrunk until the
        serialized payload is within MAX_CONTENT_LENGTH.
        """
        per_candidate = max(
            0,
            min(
                self._candidate_chars,
                MAX_CONTENT_LENGTH // max(1, len(results)) - _CANDIDATE_OVERHEAD,
            ),
        )
        while True:
            payload = json.dumps(
                [
                    {
                        "provider": r.provider_id,
                        "result": r.content[:per_candidate],
                        "confidence": r.confidence,
                    }
                    for r in results
                ],
                ensure_ascii=False,
            )
            if len(payload) <= MAX_CONTENT_LENGTH or per_candidate == 0:
                return payload
            shrunk = per_candidate * MAX_CONTENT_LENGTH // len(payload)
            per_candidate = max(0, min(shrunk, per_candidate - 1))

    def build_arbitration_request(
        self,
        results: list[ProviderResult],
        request: AnalysisRequest,
    ) -> AnalysisRequest:
        """Compact candidate set wrapped as a new request for the arbitrator."""
        return AnalysisRequest(
            task_type=TaskType.CONSENSUS_BUILDING,
            content=self.serialize_candidates(results),
            context=f"Original task: {request.task_type.value}",
            instructions=ARBITRATION_INSTRUCTIONS,
            tenant_id=request.tenant_id,
            user_id=request.user_id,
            meeting_id=request.meeting_id,
        )

    async def arbitrate(self, outcome: DispatchOutcome, request: AnalysisRequest) -> OrchestrationResult:
        """Reconcile the fan-out set through an arbitrator provider.

        Raises:
            ArbitrationFailed: the candidates could not be packed into a
                request, or every arbitrator candidate failed
        """
        results = outcome.results
        try:
            arbitration_request = self.build_arbitration_request(results, request)
        except ValidationError as e:
            raise ArbitrationFailed(
                f"Could not build an arbitration request for {len(results)} results: {e}",
                StrategyKind.CONSENSUS,
                providers_tried=outcome.providers_tried,
                providers_succeeded=outcome.providers_succeeded,
                failures=outcome.failures,
            ) from e

        failures: list[ProviderError] = []
        arbitration: ProviderResult | None = None
        for provider_id in self._arbitrators:
            attempt = await self._invoke(provider_id, arbitration_request)
            if isinstance(attempt, ProviderResult):
                arbitration = attempt
                break
            failures.append(attempt)

        if arbitration is None:
            raise ArbitrationFailed(
                f"No arbitrator could reconcile {len(results)} results",
                StrategyKind.CONSENSUS,
                providers_tried=outcome.providers_tried + len(failures),
                providers_succeeded=outcome.providers_succeeded,
                failures=outcome.failures + failures,
            )

        logger.debug(
            "Arbitrated %d results via %s (raw confidence %.3f)",
            len(results),
            arbitration.provider_id,
            arbitration.confidence,
        )

        return OrchestrationResult(
            strategy=outcome.strategy,
            content=arbitration.content,
            confidence=min(self._consensus_cap, arbitration.confidence + self._consensus_bonus),
            total_cost=outcome.total_cost + arbitration.cost_units,
            contributing_results=list(results),
            synthesized_from_count=len(results),
            alternative_results=self._alternatives(results),
            arbitration_result=arbitration,
            providers_attempted=outcome.providers_tried + len(failures) + 1,
            providers_succeeded=outcome.providers_succeeded,
            cost_unknown=arbitration.cost_unknown or any(r.cost_unknown for r in results),
        )
