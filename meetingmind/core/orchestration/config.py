"""Orchestration configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OrchestrationSettings(BaseSettings):
    """Engine settings loaded from environment (``MEETINGMIND_*``)."""

    model_config = SettingsConfigDict(
        env_prefix="MEETINGMIND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider credentials
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    aimlapi_api_key: str = ""
    aimlapi_base_url: str = "https://api.aimlapi.com/v1"
    local_endpoint: str = ""
    local_api_type: Literal["ollama", "openai-compatible"] = "ollama"

    # Routing
    default_provider: str = "aimlapi"
    quality_provider: str = "anthropic"
    arbitrator_provider: str = "anthropic"
    arbitrator_fallbacks: list[str] = Field(default_factory=lambda: ["openai"])

    # Dispatch
    provider_timeout_seconds: float = Field(default=30.0, gt=0)
    early_exit_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    min_consensus_results: int = Field(default=2, ge=2)

    # Synthesis tunables
    parallel_confidence_aggregate: Literal["mean", "max"] = "mean"
    consensus_bonus: float = Field(default=0.1, ge=0.0, le=1.0)
    consensus_cap: float = Field(default=0.95, ge=0.0, le=1.0)
    alternative_preview_chars: int = Field(default=500, gt=0)
    arbitration_candidate_chars: int = Field(default=8000, gt=0)

    # Budgets
    daily_cost_limit: float = Field(default=100.0, gt=0)
    monthly_cost_limit: float = Field(default=2000.0, gt=0)
    total_cost_limit: float | None = Field(default=None)

    # Metrics
    response_time_window: int = Field(default=100, gt=0)

    @field_validator("total_cost_limit")
    @classmethod
    def positive_total_limit(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("total_cost_limit must be positive")
        return value

    @model_validator(mode="after")
    def monthly_covers_daily(self) -> "OrchestrationSettings":
        if self.monthly_cost_limit < self.daily_cost_limit:
            raise ValueError("monthly_cost_limit must be at least daily_cost_limit")
        return self

    @property
    def arbitrators(self) -> list[str]:
        """Arbitrator candidates in the order they are tried."""
        ordered = [self.arbitrator_provider]
        ordered.extend(p for p in self.arbitrator_fallbacks if p not in ordered)
        return ordered
