"""Core types for the Model Orchestration Engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


MAX_CONTENT_LENGTH = 100_000


class TaskType(str, Enum):
    """Analysis tasks the engine knows how to dispatch."""

    MEETING_SUMMARY = "meeting_summary"
    ACTION_ITEMS = "action_items"
    SENTIMENT_ANALYSIS = "sentiment_analysis"
    INTERVIEW_ANALYSIS = "interview_analysis"
    LEGAL_ANALYSIS = "legal_analysis"
    MEDICAL_ANALYSIS = "medical_analysis"
    FINANCIAL_ANALYSIS = "financial_analysis"
    TRANSCRIPTION_CLEANUP = "transcription_cleanup"
    TRANSLATION = "translation"
    CODE_ANALYSIS = "code_analysis"

    # Internal: second-pass reconciliation issued by the synthesizer
    CONSENSUS_BUILDING = "consensus_building"

    GENERAL = "general"


class Level(str, Enum):
    """Three-step scale used for priority, complexity and budget."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StrategyKind(str, Enum):
    """Dispatch policies."""

    SINGLE = "single"
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    CONSENSUS = "consensus"


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Tasks that always get multi-provider consensus
HIGH_STAKES_TASKS: frozenset[TaskType] = frozenset({TaskType.INTERVIEW_ANALYSIS})

# Tasks pinned to a domain-preferred provider
SPECIALIZED_TASKS: frozenset[TaskType] = frozenset({
    TaskType.LEGAL_ANALYSIS,
    TaskType.MEDICAL_ANALYSIS,
    TaskType.FINANCIAL_ANALYSIS,
})

# Ordered provider preference per task
TASK_PROVIDERS: dict[TaskType, list[str]] = {
    TaskType.MEETING_SUMMARY: ["openai", "anthropic", "aimlapi"],
    TaskType.ACTION_ITEMS: ["openai", "aimlapi"],
    TaskType.SENTIMENT_ANALYSIS: ["anthropic", "google", "aimlapi"],
    TaskType.INTERVIEW_ANALYSIS: ["openai", "anthropic", "aimlapi"],
    TaskType.LEGAL_ANALYSIS: ["anthropic", "openai"],
    TaskType.MEDICAL_ANALYSIS: ["openai", "anthropic"],
    TaskType.FINANCIAL_ANALYSIS: ["openai", "aimlapi"],
    TaskType.TRANSCRIPTION_CLEANUP: ["openai", "aimlapi"],
    TaskType.TRANSLATION: ["google", "openai"],
    TaskType.CODE_ANALYSIS: ["openai", "anthropic"],
    TaskType.GENERAL: ["aimlapi", "openai"],
}

DOMAIN_PROVIDERS: dict[TaskType, str] = {
    TaskType.LEGAL_ANALYSIS: "anthropic",
    TaskType.MEDICAL_ANALYSIS: "openai",
    TaskType.FINANCIAL_ANALYSIS: "openai",
}

# Tasks where quality matters more than price when a single provider is used
QUALITY_PREFERRED_TASKS: frozenset[TaskType] = frozenset({
    TaskType.INTERVIEW_ANALYSIS,
    TaskType.LEGAL_ANALYSIS,
})

TASK_CONFIG_ADJUSTMENTS: dict[TaskType, dict[str, Any]] = {
    TaskType.CODE_ANALYSIS: {"temperature": 0.1},
    TaskType.LEGAL_ANALYSIS: {"temperature": 0.3},
    TaskType.INTERVIEW_ANALYSIS: {"temperature": 0.5, "max_tokens": 4096},
    TaskType.CONSENSUS_BUILDING: {"temperature": 0.3},
}


class AnalysisRequest(BaseModel):
    """An already-authorized request for analysis."""

    model_config = ConfigDict(frozen=True)

    task_type: TaskType = Field(description="Recognized analysis task")
    content: str = Field(min_length=1, max_length=MAX_CONTENT_LENGTH)
    context: str | None = Field(default=None)
    instructions: str | None = Field(default=None)

    priority: Level = Field(default=Level.MEDIUM)
    complexity: Level = Field(default=Level.MEDIUM)
    budget: Level = Field(default=Level.MEDIUM)

    tenant_id: str | None = Field(default=None)
    user_id: str | None = Field(default=None)
    meeting_id: str | None = Field(default=None)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class ProviderConfig(BaseModel):
    """Per-call settings handed to an adapter."""

    model: str | None = Field(default=None, description="Overrides the adapter's default model")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2048, gt=0)
    top_p: float | None = Field(default=0.9, ge=0.0, le=1.0)
    timeout_seconds: float = Field(default=30.0, gt=0)

    @classmethod
    def for_task(cls, task_type: TaskType, **overrides: Any) -> ProviderConfig:
        """Build a config with the task's adjustments applied."""
        values: dict[str, Any] = dict(TASK_CONFIG_ADJUSTMENTS.get(task_type, {}))
        values.update(overrides)
        return cls(**values)


class ProviderPricing(BaseModel):
    """Cost per 1K units of prompt (input) and completion (output)."""

    model_config = ConfigDict(frozen=True)

    input_per_1k: float = Field(default=0.001, ge=0.0)
    output_per_1k: float = Field(default=0.002, ge=0.0)

    def cost(self, prompt_units: int, completion_units: int) -> float:
        return (prompt_units / 1000) * self.input_per_1k + (completion_units / 1000) * self.output_per_1k


class Usage(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt_units: int = Field(default=0, ge=0)
    completion_units: int = Field(default=0, ge=0)
    total_units: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def fill_total(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("total_units"):
            data = dict(data)
            data["total_units"] = (data.get("prompt_units") or 0) + (data.get("completion_units") or 0)
        return data


@dataclass(frozen=True)
class RawCompletion:
    """What an adapter's backend call returned, before scoring and pricing."""

    content: str
    model: str
    finish_reason: str | None = None
    usage: Usage | None = None
    request_id: str | None = None


class ProviderResult(BaseModel):
    """Output of one successful adapter call."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    model: str = Field(default="")
    content: str
    usage: Usage = Field(default_factory=Usage)
    confidence: float = Field(ge=0.0, le=1.0)
    duration_ms: float = Field(default=0.0, ge=0.0)
    cost_units: float = Field(default=0.0, ge=0.0)
    cost_unknown: bool = Field(default=False, description="Usage was not reported; cost counted as zero")
    finish_reason: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AlternativeResult(BaseModel):
    """A non-chosen result, trimmed for the caller."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    preview: str
    confidence: float
    cost_units: float

    @classmethod
    def from_result(cls, result: ProviderResult, preview_chars: int) -> AlternativeResult:
        return cls(
            provider_id=result.provider_id,
            preview=result.content[:preview_chars],
            confidence=result.confidence,
            cost_units=result.cost_units,
        )


class OrchestrationResult(BaseModel):
    """Final answer returned by the engine."""

    model_config = ConfigDict(frozen=True)

    job_id: str | None = Field(default=None)
    strategy: StrategyKind
    task_type: TaskType | None = Field(default=None)
    content: str
    confidence: float = Field(ge=0.0, le=1.0)
    total_cost: float = Field(ge=0.0)
    duration_ms: float = Field(default=0.0, ge=0.0)

    contributing_results: list[ProviderResult] = Field(default_factory=list)
    synthesized_from_count: int = Field(default=0, ge=0)
    alternative_results: list[AlternativeResult] = Field(default_factory=list)
    arbitration_result: ProviderResult | None = Field(default=None)

    providers_attempted: int = Field(default=0, ge=0)
    providers_succeeded: int = Field(default=0, ge=0)
    cost_unknown: bool = Field(default=False)

    @model_validator(mode="after")
    def cost_covers_contributors(self) -> OrchestrationResult:
        contributed = sum(r.cost_units for r in self.contributing_results)
        if self.total_cost + 1e-9 < contributed:
            raise ValueError(
                f"total_cost {self.total_cost} is below contributing cost {contributed}"
            )
        return self

    @property
    def best_result(self) -> ProviderResult | None:
        return self.contributing_results[0] if self.contributing_results else None


@dataclass
class Job:
    """Transient bookkeeping for one in-flight orchestration call."""

    job_id: str
    task_type: TaskType
    strategy: StrategyKind
    start_time: float
    status: JobStatus = JobStatus.PROCESSING
    tenant_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
