"""Shared fixtures: scripted provider adapters and isolated settings."""

from __future__ import annotations

import asyncio

import pytest

from meetingmind.core.orchestration.adapters.base import ProviderAdapter
from meetingmind.core.orchestration.adapters.registry import ProviderRegistry
from meetingmind.core.orchestration.config import OrchestrationSettings
from meetingmind.core.orchestration.types import (
    AnalysisRequest,
    Level,
    ProviderConfig,
    ProviderResult,
    RawCompletion,
    TaskType,
    Usage,
)


class ScriptedAdapter(ProviderAdapter):
    """Adapter returning a fixed result (or failure) and counting calls."""

    provider = "scripted"
    default_model = "scripted-1"

    def __init__(
        self,
        content: str = "scripted analysis",
        confidence: float = 0.8,
        cost: float = 0.01,
        error: type[Exception] | None = None,
        delay: float = 0.0,
        cost_unknown: bool = False,
        arbitration_content: str = "consensus answer",
        arbitration_confidence: float | None = None,
        arbitration_error: type[Exception] | None = None,
    ):
        super().__init__()
        self.content = content
        self.confidence = confidence
        self.cost = cost
        self.error = error
        self.delay = delay
        self.cost_unknown = cost_unknown
        self.arbitration_content = arbitration_content
        self.arbitration_confidence = arbitration_confidence
        self.arbitration_error = arbitration_error
        self.calls: list[AnalysisRequest] = []
        self.completed = 0

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def complete(self, system_prompt: str, user_prompt: str, config: ProviderConfig) -> RawCompletion:
        return RawCompletion(
            content=self.content,
            model=self.model,
            finish_reason="stop",
            usage=Usage(prompt_units=10, completion_units=20),
        )

    async def invoke(self, request: AnalysisRequest, config: ProviderConfig) -> ProviderResult:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        self.completed += 1

        arbitrating = request.task_type == TaskType.CONSENSUS_BUILDING
        error = self.arbitration_error if arbitrating else self.error
        if error is not None:
            raise error(self.provider_id, "scripted failure")

        if arbitrating:
            content = self.arbitration_content
            confidence = self.arbitration_confidence if self.arbitration_confidence is not None else self.confidence
        else:
            content = self.content
            confidence = self.confidence

        return ProviderResult(
            provider_id=self.provider_id,
            model=self.model,
            content=content,
            usage=Usage(prompt_units=10, completion_units=20),
            confidence=confidence,
            cost_units=0.0 if self.cost_unknown else self.cost,
            cost_unknown=self.cost_unknown,
            finish_reason="stop",
        )


def make_registry(**adapters: ProviderAdapter) -> ProviderRegistry:
    return ProviderRegistry(dict(adapters))


def make_request(
    task_type: TaskType = TaskType.GENERAL,
    content: str = "Alice: we ship Friday. Bob: I will update the docs.",
    **kwargs,
) -> AnalysisRequest:
    return AnalysisRequest(task_type=task_type, content=content, **kwargs)


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return OrchestrationSettings(
        _env_file=None,
        provider_timeout_seconds=0.5,
        daily_cost_limit=100.0,
        monthly_cost_limit=2000.0,
    )


@pytest.fixture
def summary_request():
    return make_request(TaskType.MEETING_SUMMARY, complexity=Level.HIGH)
