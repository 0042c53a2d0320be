"""Anthropic Claude adapter."""

from __future__ import annotations

import os
from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from meetingmind.core.orchestration.adapters.base import ProviderAdapter
from meetingmind.core.orchestration.errors import ProviderRejected, ProviderUnavailable
from meetingmind.core.orchestration.types import ProviderConfig, ProviderPricing, RawCompletion, Usage


class AnthropicAdapter(ProviderAdapter):
    """Adapter for Anthropic Claude models."""

    provider = "anthropic"
    default_model = "claude-3-sonnet-20240229"
    default_pricing = ProviderPricing(input_per_1k=0.003, output_per_1k=0.015)

    # Output ceiling per model family
    MAX_OUTPUT = {
        "claude-3-opus": 4096,
        "claude-3-sonnet": 4096,
        "claude-3-haiku": 4096,
        "claude-3-5-sonnet": 8192,
    }

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        client: Any | None = None,
        **kwargs: Any,
    ):
        """Initialize Anthropic adapter.

        Args:
            model: Model name (e.g., "claude-3-5-sonnet-20241022")
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            client: Pre-built async client (used by tests)
            **kwargs: Passed to ProviderAdapter
        """
        super().__init__(model, **kwargs)

        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._client = client
        if self._client is None and not self._api_key:
            raise ValueError("Anthropic API key required")

    @property
    def client(self) -> Any:
        """Get or create the Anthropic client."""
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self._api_key)
        return self._client

    def max_output_for(self, model: str) -> int | None:
        for prefix, limit in self.MAX_OUTPUT.items():
            if model.startswith(prefix):
                return limit
        return None

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        config: ProviderConfig,
    ) -> RawCompletion:
        model = self.resolve_model(config)
        max_tokens = config.max_tokens
        limit = self.max_output_for(model)
        if limit is not None:
            max_tokens = min(max_tokens, limit)

        params: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": min(config.temperature, 1.0),
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }

        try:
            response = await self.client.messages.create(**params)
        except anthropic.APIConnectionError as e:
            raise ProviderUnavailable(self.provider_id, f"connection error: {e}") from e
        except anthropic.APIStatusError as e:
            if e.status_code == 429 or e.status_code >= 500:
                raise ProviderUnavailable(self.provider_id, f"status {e.status_code}: {e.message}") from e
            raise ProviderRejected(self.provider_id, f"status {e.status_code}: {e.message}") from e
        except anthropic.AnthropicError as e:
            raise ProviderUnavailable(self.provider_id, str(e)) from e

        # Claude returns a list of content blocks; keep the text ones
        content = "".join(
            block.text for block in (response.content or []) if getattr(block, "type", "text") == "text"
        )

        usage = None
        if response.usage is not None:
            usage = Usage(
                prompt_units=response.usage.input_tokens or 0,
                completion_units=response.usage.output_tokens or 0,
            )

        return RawCompletion(
            content=content,
            model=getattr(response, "model", None) or model,
            finish_reason=response.stop_reason,
            usage=usage,
            request_id=getattr(response, "id", None),
        )
