"""Local model adapter for Ollama, vLLM, LMStudio, etc."""

from __future__ import annotations

from typing import Any

from meetingmind.core.orchestration.adapters.base import ProviderAdapter
from meetingmind.core.orchestration.adapters.http import post_json
from meetingmind.core.orchestration.types import ProviderConfig, ProviderPricing, RawCompletion, Usage


class LocalModelAdapter(ProviderAdapter):
    """Adapter for self-hosted models. Calls are free."""

    provider = "local"
    default_model = "llama-3-8b"
    default_pricing = ProviderPricing(input_per_1k=0.0, output_per_1k=0.0)

    def __init__(
        self,
        model: str | None = None,
        endpoint: str = "http://localhost:11434",
        api_type: str = "ollama",
        **kwargs: Any,
    ):
        """Initialize local model adapter.

        Args:
            model: Model name (e.g., "llama-3-8b", "mistral-7b")
            endpoint: API endpoint URL
            api_type: API type ("ollama" or "openai-compatible")
            **kwargs: Passed to ProviderAdapter
        """
        super().__init__(model, **kwargs)

        if api_type not in ("ollama", "openai-compatible"):
            raise ValueError(f"Unknown local api_type: {api_type}")
        self._endpoint = endpoint.rstrip("/")
        self._api_type = api_type

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        config: ProviderConfig,
    ) -> RawCompletion:
        if self._api_type == "openai-compatible":
            return await self._complete_openai_compatible(system_prompt, user_prompt, config)
        return await self._complete_ollama(system_prompt, user_prompt, config)

    async def _complete_ollama(
        self,
        system_prompt: str,
        user_prompt: str,
        config: ProviderConfig,
    ) -> RawCompletion:
        model = self.resolve_model(config)
        payload = {
            "model": model,
            "system": system_prompt,
            "prompt": user_prompt,
            "options": {
                "num_predict": config.max_tokens,
                "temperature": config.temperature,
            },
            "stream": False,
        }

        result = await post_json(
            self.provider_id,
            f"{self._endpoint}/api/generate",
            payload,
            timeout_seconds=config.timeout_seconds,
        )

        usage = None
        if "prompt_eval_count" in result or "eval_count" in result:
            usage = Usage(
                prompt_units=result.get("prompt_eval_count", 0),
                completion_units=result.get("eval_count", 0),
            )

        return RawCompletion(
            content=result.get("response", ""),
            model=model,
            finish_reason="stop" if result.get("done") else "length",
            usage=usage,
        )

    async def _complete_openai_compatible(
        self,
        system_prompt: str,
        user_prompt: str,
        config: ProviderConfig,
    ) -> RawCompletion:
        model = self.resolve_model(config)
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }

        result = await post_json(
            self.provider_id,
            f"{self._endpoint}/v1/chat/completions",
            payload,
            timeout_seconds=config.timeout_seconds,
        )

        choice = (result.get("choices") or [{}])[0]
        raw_usage = result.get("usage")
        usage = None
        if raw_usage:
            usage = Usage(
                prompt_units=raw_usage.get("prompt_tokens", 0),
                completion_units=raw_usage.get("completion_tokens", 0),
                total_units=raw_usage.get("total_tokens", 0),
            )

        return RawCompletion(
            content=choice.get("message", {}).get("content") or "",
            model=model,
            finish_reason=choice.get("finish_reason"),
            usage=usage,
        )
