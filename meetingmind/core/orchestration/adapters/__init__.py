"""Provider adapters for the inference backends."""

from meetingmind.core.orchestration.adapters.base import ProviderAdapter
from meetingmind.core.orchestration.adapters.openai_adapter import AIMLAPIAdapter, OpenAIAdapter
from meetingmind.core.orchestration.adapters.anthropic_adapter import AnthropicAdapter
from meetingmind.core.orchestration.adapters.google_adapter import GoogleAdapter
from meetingmind.core.orchestration.adapters.local_adapter import LocalModelAdapter
from meetingmind.core.orchestration.adapters.registry import ProviderRegistry

__all__ = [
    "ProviderAdapter",
    "OpenAIAdapter",
    "AIMLAPIAdapter",
    "AnthropicAdapter",
    "GoogleAdapter",
    "LocalModelAdapter",
    "ProviderRegistry",
]
