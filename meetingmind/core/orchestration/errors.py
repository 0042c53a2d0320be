"""Exception taxonomy for the orchestration engine.

Provider errors are recovered inside the Dispatcher. Strategy errors are
raised when a strategy's minimum-success threshold is not met, and the
engine wraps those in ``OrchestrationFailed`` for callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from meetingmind.core.orchestration.types import StrategyKind


class OrchestrationError(Exception):
    """Base class for every error raised by this package."""


class InvalidRequest(OrchestrationError):
    """The request cannot be dispatched as given."""


class ProviderError(OrchestrationError):
    """A single adapter call failed."""

    retryable: bool = False

    def __init__(self, provider_id: str, detail: str = ""):
        self.provider_id = provider_id
        self.detail = detail
        super().__init__(f"{provider_id}: {detail}" if detail else provider_id)


class ProviderUnavailable(ProviderError):
    """Transient failure (network, overload, timeout). Safe to skip or retry."""

    retryable = True


class ProviderRejected(ProviderError):
    """The provider refused this request. Not retryable."""

    retryable = False


class ProviderNotRegistered(ProviderRejected):
    """No adapter is registered under the requested provider id."""

    def __init__(self, provider_id: str):
        super().__init__(provider_id, "provider not registered")


class StrategyError(OrchestrationError):
    """A dispatch strategy could not produce a result."""

    def __init__(
        self,
        message: str,
        strategy: StrategyKind,
        providers_tried: int = 0,
        providers_succeeded: int = 0,
        failures: list[ProviderError] | None = None,
    ):
        self.strategy = strategy
        self.providers_tried = providers_tried
        self.providers_succeeded = providers_succeeded
        self.failures = list(failures or [])
        super().__init__(message)


class AllProvidersFailed(StrategyError):
    """Every attempted provider failed."""


class InsufficientConsensusData(StrategyError):
    """Consensus needs more successful results than were collected."""


class ArbitrationFailed(StrategyError):
    """The fan-out succeeded but no arbitrator could reconcile it."""


class OrchestrationFailed(OrchestrationError):
    """Outward-facing failure of ``OrchestrationEngine.process``."""

    def __init__(self, cause: StrategyError, job_id: str | None = None):
        self.cause = cause
        self.job_id = job_id
        self.strategy = cause.strategy
        self.providers_tried = cause.providers_tried
        self.providers_succeeded = cause.providers_succeeded
        super().__init__(
            f"{cause.strategy.value} strategy failed "
            f"({cause.providers_succeeded}/{cause.providers_tried} providers succeeded): {cause}"
        )
