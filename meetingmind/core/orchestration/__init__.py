"""Model Orchestration Engine for MeetingMind.

Decides how to satisfy an analysis request with interchangeable
inference providers:
- Selects a dispatch strategy (single, sequential, parallel, consensus)
- Dispatches with per-call timeouts and partial-failure tolerance
- Synthesizes results by confidence, or arbitrates a consensus
- Tracks spend against daily and monthly budgets
"""

from meetingmind.core.orchestration.types import (
    AnalysisRequest,
    AlternativeResult,
    Job,
    JobStatus,
    Level,
    OrchestrationResult,
    ProviderConfig,
    ProviderPricing,
    ProviderResult,
    RawCompletion,
    StrategyKind,
    TaskType,
    Usage,
)
from meetingmind.core.orchestration.errors import (
    AllProvidersFailed,
    ArbitrationFailed,
    InsufficientConsensusData,
    InvalidRequest,
    OrchestrationError,
    OrchestrationFailed,
    ProviderError,
    ProviderNotRegistered,
    ProviderRejected,
    ProviderUnavailable,
    StrategyError,
)
from meetingmind.core.orchestration.config import OrchestrationSettings
from meetingmind.core.orchestration.confidence import ConfidenceEstimator
from meetingmind.core.orchestration.strategy import ProviderPlanner, select_strategy
from meetingmind.core.orchestration.adapters import (
    AIMLAPIAdapter,
    AnthropicAdapter,
    GoogleAdapter,
    LocalModelAdapter,
    OpenAIAdapter,
    ProviderAdapter,
    ProviderRegistry,
)
from meetingmind.core.orchestration.cost_tracker import BudgetScope, BudgetWindow, CostTracker
from meetingmind.core.orchestration.events import EventBus, EventType, OrchestrationEvent
from meetingmind.core.orchestration.dispatcher import DispatchOutcome, Dispatcher
from meetingmind.core.orchestration.synthesizer import ResultSynthesizer
from meetingmind.core.orchestration.metrics import PerformanceMetrics
from meetingmind.core.orchestration.engine import OrchestrationEngine

__all__ = [
    # Types
    "AnalysisRequest",
    "AlternativeResult",
    "Job",
    "JobStatus",
    "Level",
    "OrchestrationResult",
    "ProviderConfig",
    "ProviderPricing",
    "ProviderResult",
    "RawCompletion",
    "StrategyKind",
    "TaskType",
    "Usage",
    # Errors
    "AllProvidersFailed",
    "ArbitrationFailed",
    "InsufficientConsensusData",
    "InvalidRequest",
    "OrchestrationError",
    "OrchestrationFailed",
    "ProviderError",
    "ProviderNotRegistered",
    "ProviderRejected",
    "ProviderUnavailable",
    "StrategyError",
    # Config
    "OrchestrationSettings",
    # Components
    "ConfidenceEstimator",
    "ProviderPlanner",
    "select_strategy",
    "ProviderAdapter",
    "OpenAIAdapter",
    "AIMLAPIAdapter",
    "AnthropicAdapter",
    "GoogleAdapter",
    "LocalModelAdapter",
    "ProviderRegistry",
    "BudgetScope",
    "BudgetWindow",
    "CostTracker",
    "EventBus",
    "EventType",
    "OrchestrationEvent",
    "DispatchOutcome",
    "Dispatcher",
    "ResultSynthesizer",
    "PerformanceMetrics",
    "OrchestrationEngine",
]
