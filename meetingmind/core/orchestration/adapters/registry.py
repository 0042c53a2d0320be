"""Provider registry for managing adapters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from meetingmind.core.orchestration.adapters.base import ProviderAdapter
from meetingmind.core.orchestration.errors import ProviderNotRegistered

if TYPE_CHECKING:
    from meetingmind.core.orchestration.config import OrchestrationSettings

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry of provider adapters keyed by provider id.

    Registration order is preserved and used as the last-resort
    fallback order.
    """

    def __init__(self, adapters: dict[str, ProviderAdapter] | None = None):
        self._adapters: dict[str, ProviderAdapter] = {}
        for provider_id, adapter in (adapters or {}).items():
            self.register_adapter(provider_id, adapter)

    @classmethod
    def from_settings(cls, settings: OrchestrationSettings) -> ProviderRegistry:
        """Build adapters for every provider that has credentials configured."""
        from meetingmind.core.orchestration.adapters.anthropic_adapter import AnthropicAdapter
        from meetingmind.core.orchestration.adapters.google_adapter import GoogleAdapter
        from meetingmind.core.orchestration.adapters.local_adapter import LocalModelAdapter
        from meetingmind.core.orchestration.adapters.openai_adapter import AIMLAPIAdapter, OpenAIAdapter

        registry = cls()

        if settings.openai_api_key:
            registry.register_adapter("openai", OpenAIAdapter(api_key=settings.openai_api_key))
        if settings.anthropic_api_key:
            registry.register_adapter("anthropic", AnthropicAdapter(api_key=settings.anthropic_api_key))
        if settings.google_api_key:
            registry.register_adapter("google", GoogleAdapter(api_key=settings.google_api_key))
        if settings.aimlapi_api_key:
            registry.register_adapter(
                "aimlapi",
                AIMLAPIAdapter(api_key=settings.aimlapi_api_key, base_url=settings.aimlapi_base_url),
            )
        if settings.local_endpoint:
            registry.register_adapter(
                "local",
                LocalModelAdapter(endpoint=settings.local_endpoint, api_type=settings.local_api_type),
            )

        logger.info("Provider registry initialized with %d providers: %s", len(registry), registry.provider_ids)
        return registry

    def register_adapter(self, provider_id: str, adapter: ProviderAdapter) -> None:
        """Register an adapter under a provider id, replacing any previous one."""
        adapter.provider_id = provider_id
        self._adapters[provider_id] = adapter
        logger.debug("Registered provider adapter: %s (%s)", provider_id, type(adapter).__name__)

    def unregister(self, provider_id: str) -> None:
        self._adapters.pop(provider_id, None)

    def get_adapter(self, provider_id: str) -> ProviderAdapter:
        """Get the adapter for a provider.

        Raises:
            ProviderNotRegistered: If no adapter has that id
        """
        try:
            return self._adapters[provider_id]
        except KeyError:
            raise ProviderNotRegistered(provider_id) from None

    def is_available(self, provider_id: str) -> bool:
        return provider_id in self._adapters

    @property
    def provider_ids(self) -> list[str]:
        return list(self._adapters)

    def filter_available(self, provider_ids: list[str]) -> list[str]:
        """Keep registered ids, preserving order and dropping duplicates."""
        seen: set[str] = set()
        available = []
        for provider_id in provider_ids:
            if provider_id in self._adapters and provider_id not in seen:
                seen.add(provider_id)
                available.append(provider_id)
        return available

    async def check_health(self, provider_id: str) -> dict[str, Any]:
        """Check health of a specific provider."""
        try:
            adapter = self.get_adapter(provider_id)
            return await adapter.health_check()
        except Exception as e:
            return {"healthy": False, "error": str(e)}

    async def get_all_health(self) -> dict[str, dict[str, Any]]:
        results = {}
        for provider_id in self._adapters:
            results[provider_id] = await self.check_health(provider_id)
        return results

    def __len__(self) -> int:
        return len(self._adapters)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._adapters
