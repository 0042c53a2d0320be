"""Google Gemini adapter over the Generative Language REST API."""

from __future__ import annotations

import os
from typing import Any

from meetingmind.core.orchestration.adapters.base import ProviderAdapter
from meetingmind.core.orchestration.adapters.http import post_json
from meetingmind.core.orchestration.errors import ProviderRejected
from meetingmind.core.orchestration.types import ProviderConfig, ProviderPricing, RawCompletion, Usage


class GoogleAdapter(ProviderAdapter):
    """Adapter for Gemini models."""

    provider = "google"
    default_model = "gemini-pro"
    default_pricing = ProviderPricing(input_per_1k=0.0005, output_per_1k=0.0015)

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        endpoint: str = "https://generativelanguage.googleapis.com/v1beta",
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)

        self._api_key = api_key or os.environ.get("GOOGLE_AI_API_KEY")
        if not self._api_key:
            raise ValueError("Google AI API key required")
        self._endpoint = endpoint.rstrip("/")

    def build_payload(self, system_prompt: str, user_prompt: str, config: ProviderConfig) -> dict[str, Any]:
        generation_config: dict[str, Any] = {
            "temperature": config.temperature,
            "maxOutputTokens": config.max_tokens,
        }
        if config.top_p is not None:
            generation_config["topP"] = config.top_p

        return {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": generation_config,
        }

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        config: ProviderConfig,
    ) -> RawCompletion:
        model = self.resolve_model(config)
        result = await post_json(
            self.provider_id,
            f"{self._endpoint}/models/{model}:generateContent",
            self.build_payload(system_prompt, user_prompt, config),
            timeout_seconds=config.timeout_seconds,
            params={"key": self._api_key},
        )
        return self.parse_response(result, model)

    def parse_response(self, result: dict[str, Any], model: str) -> RawCompletion:
        candidates = result.get("candidates") or []
        if not candidates:
            reason = (result.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise ProviderRejected(self.provider_id, f"blocked: {reason}")

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        content = "".join(part.get("text", "") for part in parts)

        metadata = result.get("usageMetadata")
        usage = None
        if metadata:
            usage = Usage(
                prompt_units=metadata.get("promptTokenCount", 0),
                completion_units=metadata.get("candidatesTokenCount", 0),
                total_units=metadata.get("totalTokenCount", 0),
            )

        return RawCompletion(
            content=content,
            model=model,
            finish_reason=candidate.get("finishReason"),
            usage=usage,
        )
