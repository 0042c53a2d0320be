"""Strategy selection and provider planning.

``select_strategy`` maps request attributes to a dispatch strategy.
Rules are evaluated in order and the first match wins:

1. high priority or a high-stakes task -> consensus
2. high complexity -> parallel
3. specialized domain task -> single, pinned to the domain provider
4. low budget -> sequential
5. otherwise -> single

``ProviderPlanner`` turns a request and strategy into the ordered list
of provider ids to invoke.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from meetingmind.core.orchestration.types import (
    DOMAIN_PROVIDERS,
    HIGH_STAKES_TASKS,
    QUALITY_PREFERRED_TASKS,
    SPECIALIZED_TASKS,
    TASK_PROVIDERS,
    AnalysisRequest,
    Level,
    StrategyKind,
    TaskType,
)

logger = logging.getLogger(__name__)


def select_strategy(request: AnalysisRequest) -> StrategyKind:
    """Pick the dispatch strategy for a request. Never fails."""
    if request.priority == Level.HIGH or request.task_type in HIGH_STAKES_TASKS:
        return StrategyKind.CONSENSUS

    if request.complexity == Level.HIGH:
        return StrategyKind.PARALLEL

    if request.task_type in SPECIALIZED_TASKS:
        return StrategyKind.SINGLE

    if request.budget == Level.LOW:
        return StrategyKind.SEQUENTIAL

    return StrategyKind.SINGLE


def is_domain_pinned(request: AnalysisRequest, strategy: StrategyKind) -> bool:
    """True when a single-provider call goes to the domain-preferred provider."""
    return strategy == StrategyKind.SINGLE and request.task_type in SPECIALIZED_TASKS


@dataclass
class ProviderPlanner:
    """Chooses which registered providers a strategy should call."""

    available: list[str]
    default_provider: str = "aimlapi"
    quality_provider: str = "anthropic"

    def providers_for_task(self, task_type: TaskType) -> list[str]:
        """Ordered, available providers for a task type."""
        preferred = TASK_PROVIDERS.get(task_type, TASK_PROVIDERS[TaskType.GENERAL])
        return [p for p in preferred if p in self.available]

    def plan(self, request: AnalysisRequest, strategy: StrategyKind) -> list[str]:
        """Provider ids to invoke for this strategy, in order."""
        if strategy == StrategyKind.SINGLE:
            provider = self.single_provider(request)
            return [provider] if provider else []
        return self.providers_for_task(request.task_type)

    def single_provider(self, request: AnalysisRequest) -> str | None:
        if request.task_type in SPECIALIZED_TASKS:
            wanted = DOMAIN_PROVIDERS[request.task_type]
        elif request.budget == Level.LOW:
            wanted = self.default_provider
        elif request.task_type in QUALITY_PREFERRED_TASKS:
            wanted = self.quality_provider
        else:
            wanted = self.default_provider

        for candidate in (wanted, self.default_provider):
            if candidate in self.available:
                if candidate != wanted:
                    logger.info("Provider %s unavailable, falling back to %s", wanted, candidate)
                return candidate

        if self.available:
            logger.info("Provider %s unavailable, falling back to %s", wanted, self.available[0])
            return self.available[0]
        return None
