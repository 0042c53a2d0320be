"""Base provider adapter interface."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any

from meetingmind.core.orchestration.confidence import DEFAULT_ESTIMATOR, ConfidenceEstimator
from meetingmind.core.orchestration.types import (
    AnalysisRequest,
    ProviderConfig,
    ProviderPricing,
    ProviderResult,
    RawCompletion,
    TaskType,
    Usage,
)


SYSTEM_PROMPTS: dict[TaskType, str] = {
    TaskType.MEETING_SUMMARY: "You are an expert meeting analyst. Capture key decisions, action items, and next steps.",
    TaskType.ACTION_ITEMS: "You are a task management expert. Extract action items with owners, deadlines, and priorities.",
    TaskType.SENTIMENT_ANALYSIS: "You are an emotional intelligence expert. Analyze sentiment, engagement, and team dynamics.",
    TaskType.INTERVIEW_ANALYSIS: "You are a hiring expert. Assess strengths, concerns, fit, and give a hiring recommendation.",
    TaskType.LEGAL_ANALYSIS: "You are a legal expert. Identify legal implications, risks, and compliance requirements.",
    TaskType.MEDICAL_ANALYSIS: "You are a medical expert. Analyze health-related content with accurate terminology.",
    TaskType.FINANCIAL_ANALYSIS: "You are a financial expert. Analyze financial data, trends, and implications.",
    TaskType.TRANSCRIPTION_CLEANUP: "You are a transcription expert. Clean up the transcript while preserving meaning.",
    TaskType.TRANSLATION: "You are a professional translator. Provide accurate, culturally appropriate translations.",
    TaskType.CODE_ANALYSIS: "You are a senior software engineer. Review code for quality, security, and performance.",
    TaskType.CONSENSUS_BUILDING: "You reconcile analyses from several AI models into one answer.",
}

DEFAULT_SYSTEM_PROMPT = "You are an AI assistant providing helpful, accurate, and professional analysis."


class ProviderAdapter(ABC):
    """Base class for provider-specific adapters.

    Subclasses implement ``complete`` against their backend and translate
    backend failures into ``ProviderUnavailable`` or ``ProviderRejected``.
    ``invoke`` is the uniform contract the Dispatcher calls. Adapters
    keep no per-call state, so one instance may serve concurrent calls.
    """

    provider: str = "base"
    default_model: str = ""
    default_pricing = ProviderPricing()

    def __init__(
        self,
        model: str | None = None,
        pricing: ProviderPricing | None = None,
        estimator: ConfidenceEstimator | None = None,
        provider_id: str | None = None,
        **kwargs: Any,
    ):
        self.model = model or self.default_model
        self.pricing = pricing or self.default_pricing
        self.provider_id = provider_id or self.provider
        self._estimator = estimator or DEFAULT_ESTIMATOR
        self._config = kwargs

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        config: ProviderConfig,
    ) -> RawCompletion:
        """Run one backend completion.

        Args:
            system_prompt: Task framing
            user_prompt: Content, context and instructions
            config: Model, sampling and token settings

        Returns:
            RawCompletion with usage when the backend reports it

        Raises:
            ProviderUnavailable: transient failure
            ProviderRejected: the backend refused the request
        """

    async def invoke(self, request: AnalysisRequest, config: ProviderConfig) -> ProviderResult:
        """Execute a request and return a scored, priced result."""
        start_time = time.monotonic()

        raw = await self.complete(
            system_prompt=self.build_system_prompt(request),
            user_prompt=self.build_user_prompt(request),
            config=config,
        )

        duration_ms = (time.monotonic() - start_time) * 1000
        cost, cost_unknown = self.calculate_cost(raw.usage)

        return ProviderResult(
            provider_id=self.provider_id,
            model=raw.model or self.model,
            content=raw.content,
            usage=raw.usage or Usage(),
            confidence=self._estimator.estimate(raw, request.task_type),
            duration_ms=duration_ms,
            cost_units=cost,
            cost_unknown=cost_unknown,
            finish_reason=raw.finish_reason,
        )

    def calculate_cost(self, usage: Usage | None) -> tuple[float, bool]:
        """Price a call. Missing usage costs zero and is flagged."""
        if usage is None:
            return 0.0, True
        return self.pricing.cost(usage.prompt_units, usage.completion_units), False

    def build_system_prompt(self, request: AnalysisRequest) -> str:
        return SYSTEM_PROMPTS.get(request.task_type, DEFAULT_SYSTEM_PROMPT)

    def build_user_prompt(self, request: AnalysisRequest) -> str:
        parts = []
        if request.context:
            parts.append(f"Context: {request.context}")
        parts.append(f"Content to analyze:\n{request.content}")
        if request.instructions:
            parts.append(f"Specific instructions: {request.instructions}")
        parts.append("Please provide a thorough analysis following the guidelines for this task type.")
        return "\n\n".join(parts)

    def resolve_model(self, config: ProviderConfig) -> str:
        return config.model or self.model

    async def health_check(self) -> dict[str, Any]:
        """Check if the provider is available and responsive."""
        try:
            start = time.monotonic()
            await self.complete(
                system_prompt=DEFAULT_SYSTEM_PROMPT,
                user_prompt="Say 'ok'",
                config=ProviderConfig(max_tokens=10, temperature=0),
            )
            latency = (time.monotonic() - start) * 1000
            return {"healthy": True, "latency_ms": latency}
        except Exception as e:
            return {"healthy": False, "error": str(e)}
