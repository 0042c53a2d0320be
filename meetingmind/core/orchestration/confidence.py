"""Heuristic confidence scoring for provider completions.

The score is derived from the shape of a completion only:
- output length relative to a per-task threshold
- whether the provider stopped cleanly or was truncated
- completion size relative to prompt size

Scores are clamped to [0.1, 0.99] so no single result claims
certainty or impossibility.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from meetingmind.core.orchestration.types import RawCompletion, TaskType


CLEAN_STOP_REASONS = frozenset({"stop", "end_turn", "stop_sequence", "STOP", "complete"})

# Characters of output considered a substantive answer for each task
TASK_LENGTH_THRESHOLDS: dict[TaskType, int] = {
    TaskType.ACTION_ITEMS: 200,
    TaskType.SENTIMENT_ANALYSIS: 300,
    TaskType.TRANSLATION: 100,
    TaskType.TRANSCRIPTION_CLEANUP: 300,
}

DEFAULT_LENGTH_THRESHOLD = 500


@dataclass(frozen=True)
class ConfidenceEstimator:
    """Deterministic, stateless scorer. Safe to share across tasks."""

    base: float = 0.8
    length_bonus: float = 0.05
    clean_stop_bonus: float = 0.05
    short_completion_penalty: float = 0.05
    floor: float = 0.1
    ceiling: float = 0.99
    length_thresholds: dict[TaskType, int] = field(default_factory=lambda: dict(TASK_LENGTH_THRESHOLDS))

    def threshold_for(self, task_type: TaskType | None) -> int:
        if task_type is None:
            return DEFAULT_LENGTH_THRESHOLD
        return self.length_thresholds.get(task_type, DEFAULT_LENGTH_THRESHOLD)

    def estimate(self, outcome: RawCompletion, task_type: TaskType | None = None) -> float:
        """Score a raw completion in [floor, ceiling]."""
        score = self.base

        if len(outcome.content) > self.threshold_for(task_type):
            score += self.length_bonus

        if outcome.finish_reason in CLEAN_STOP_REASONS:
            score += self.clean_stop_bonus

        usage = outcome.usage
        if usage is not None and usage.completion_units < usage.prompt_units:
            score -= self.short_completion_penalty

        return round(min(self.ceiling, max(self.floor, score)), 6)


DEFAULT_ESTIMATOR = ConfidenceEstimator()
