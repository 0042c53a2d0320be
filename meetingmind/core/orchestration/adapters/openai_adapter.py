"""OpenAI and OpenAI-compatible (AIMLAPI) adapters."""

from __future__ import annotations

import os
from typing import Any

import openai
from openai import AsyncOpenAI

from meetingmind.core.orchestration.adapters.base import ProviderAdapter
from meetingmind.core.orchestration.errors import ProviderRejected, ProviderUnavailable
from meetingmind.core.orchestration.types import ProviderConfig, ProviderPricing, RawCompletion, Usage


RETRYABLE_STATUS = frozenset({408, 409, 429})


def _translate_error(provider_id: str, exc: openai.OpenAIError) -> Exception:
    if isinstance(exc, openai.APIConnectionError):
        # APITimeoutError is a subclass
        return ProviderUnavailable(provider_id, f"connection error: {exc}")
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code in RETRYABLE_STATUS or exc.status_code >= 500:
            return ProviderUnavailable(provider_id, f"status {exc.status_code}: {exc.message}")
        return ProviderRejected(provider_id, f"status {exc.status_code}: {exc.message}")
    return ProviderUnavailable(provider_id, str(exc))


class OpenAIAdapter(ProviderAdapter):
    """Adapter for OpenAI chat completion models."""

    provider = "openai"
    default_model = "gpt-4-turbo-preview"
    default_pricing = ProviderPricing(input_per_1k=0.01, output_per_1k=0.03)
    default_base_url: str | None = None
    api_key_env = "OPENAI_API_KEY"

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        client: Any | None = None,
        **kwargs: Any,
    ):
        """Initialize OpenAI adapter.

        Args:
            model: Model name (e.g., "gpt-4o")
            api_key: API key (defaults to OPENAI_API_KEY env var)
            base_url: Alternate OpenAI-compatible endpoint
            client: Pre-built async client (used by tests)
            **kwargs: Passed to ProviderAdapter
        """
        super().__init__(model, **kwargs)

        self._api_key = api_key or os.environ.get(self.api_key_env)
        self._base_url = base_url or self.default_base_url
        self._client = client
        if self._client is None and not self._api_key:
            raise ValueError(f"{self.provider} API key required")

    @property
    def client(self) -> Any:
        """Get or create the async client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        config: ProviderConfig,
    ) -> RawCompletion:
        params: dict[str, Any] = {
            "model": self.resolve_model(config),
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
        }
        if config.top_p is not None:
            params["top_p"] = config.top_p

        try:
            response = await self.client.chat.completions.create(**params)
        except openai.OpenAIError as e:
            raise _translate_error(self.provider_id, e) from e

        if not response.choices:
            raise ProviderUnavailable(self.provider_id, "empty choices in response")

        choice = response.choices[0]
        usage = None
        if response.usage is not None:
            usage = Usage(
                prompt_units=response.usage.prompt_tokens or 0,
                completion_units=response.usage.completion_tokens or 0,
                total_units=response.usage.total_tokens or 0,
            )

        return RawCompletion(
            content=choice.message.content or "",
            model=getattr(response, "model", None) or params["model"],
            finish_reason=choice.finish_reason,
            usage=usage,
            request_id=getattr(response, "id", None),
        )


class AIMLAPIAdapter(OpenAIAdapter):
    """AIMLAPI gateway: OpenAI wire format at a lower price point."""

    provider = "aimlapi"
    default_model = "gpt-4o-mini"
    default_pricing = ProviderPricing(input_per_1k=0.000075, output_per_1k=0.0003)
    default_base_url = "https://api.aimlapi.com/v1"
    api_key_env = "AIMLAPI_KEY"
