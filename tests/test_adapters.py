"""Unit tests for provider adapters and the registry."""

from types import SimpleNamespace

import anthropic
import httpx
import openai
import pytest

import meetingmind.core.orchestration.adapters.local_adapter as local_module
from meetingmind.core.orchestration.adapters import (
    AIMLAPIAdapter,
    AnthropicAdapter,
    GoogleAdapter,
    LocalModelAdapter,
    OpenAIAdapter,
    ProviderRegistry,
)
from meetingmind.core.orchestration.adapters.base import DEFAULT_SYSTEM_PROMPT, SYSTEM_PROMPTS
from meetingmind.core.orchestration.config import OrchestrationSettings
from meetingmind.core.orchestration.errors import ProviderNotRegistered, ProviderRejected, ProviderUnavailable
from meetingmind.core.orchestration.types import ProviderConfig, TaskType, Usage

from conftest import ScriptedAdapter, make_request


REQUEST = httpx.Request("POST", "https://api.example.com/v1/chat/completions")


class FakeCreate:
    """Records call parameters and returns (or raises) a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.params = None

    async def create(self, **params):
        self.params = params
        if self.error is not None:
            raise self.error
        return self.response


def openai_client(response=None, error=None):
    completions = FakeCreate(response, error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def openai_response(content="x" * 600, usage=True):
    return SimpleNamespace(
        id="chatcmpl-1",
        model="gpt-4o",
        choices=[SimpleNamespace(message=SimpleNamespace(content=content), finish_reason="stop")],
        usage=SimpleNamespace(prompt_tokens=100, completion_tokens=300, total_tokens=400) if usage else None,
    )


# ============================================================================
# Test: base adapter
# ============================================================================

class TestProviderAdapter:
    """Test the shared invoke contract."""

    def test_system_prompt_per_task(self):
        adapter = ScriptedAdapter()

        assert adapter.build_system_prompt(make_request(TaskType.LEGAL_ANALYSIS)) == SYSTEM_PROMPTS[TaskType.LEGAL_ANALYSIS]
        assert adapter.build_system_prompt(make_request(TaskType.GENERAL)) == DEFAULT_SYSTEM_PROMPT

    def test_user_prompt_includes_context_and_instructions(self):
        adapter = ScriptedAdapter()
        request = make_request(context="Weekly sync", instructions="Use bullets")

        prompt = adapter.build_user_prompt(request)

        assert "Context: Weekly sync" in prompt
        assert request.content in prompt
        assert "Specific instructions: Use bullets" in prompt

    def test_missing_usage_costs_zero_and_is_flagged(self):
        assert ScriptedAdapter().calculate_cost(None) == (0.0, True)

    def test_cost_from_usage(self):
        adapter = OpenAIAdapter(client=object())

        cost, unknown = adapter.calculate_cost(Usage(prompt_units=1000, completion_units=1000))

        assert cost == pytest.approx(0.04)
        assert unknown is False

    @pytest.mark.asyncio
    async def test_health_check(self):
        assert (await ScriptedAdapter().health_check())["healthy"] is True


# ============================================================================
# Test: OpenAI-compatible adapters
# ============================================================================

class TestOpenAIAdapter:
    """Test OpenAI adapter against a fake client."""

    def test_requires_key_or_client(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ValueError):
            OpenAIAdapter()

    @pytest.mark.asyncio
    async def test_invoke_maps_usage_cost_and_confidence(self):
        client, completions = openai_client(openai_response())
        adapter = OpenAIAdapter(client=client)

        result = await adapter.invoke(make_request(TaskType.MEETING_SUMMARY), ProviderConfig())

        assert result.provider_id == "openai"
        assert result.model == "gpt-4o"
        assert result.usage.total_units == 400
        assert result.cost_units == pytest.approx(0.01)
        assert result.confidence == 0.9
        assert completions.params["messages"][0]["role"] == "system"
        assert completions.params["top_p"] == 0.9

    @pytest.mark.asyncio
    async def test_missing_usage_is_cost_unknown(self):
        client, _ = openai_client(openai_response(usage=False))
        adapter = OpenAIAdapter(client=client)

        result = await adapter.invoke(make_request(), ProviderConfig())

        assert result.cost_units == 0.0
        assert result.cost_unknown is True

    @pytest.mark.asyncio
    async def test_task_adjusted_config_is_sent(self):
        client, completions = openai_client(openai_response())
        adapter = OpenAIAdapter(client=client)

        await adapter.invoke(make_request(TaskType.CODE_ANALYSIS), ProviderConfig.for_task(TaskType.CODE_ANALYSIS))

        assert completions.params["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_empty_choices_is_unavailable(self):
        response = openai_response()
        response.choices = []
        client, _ = openai_client(response)

        with pytest.raises(ProviderUnavailable):
            await OpenAIAdapter(client=client).invoke(make_request(), ProviderConfig())

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,expected",
        [
            (openai.APIConnectionError(request=REQUEST), ProviderUnavailable),
            (openai.APITimeoutError(request=REQUEST), ProviderUnavailable),
            (openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None), ProviderUnavailable),
            (openai.InternalServerError("oops", response=httpx.Response(500, request=REQUEST), body=None), ProviderUnavailable),
            (openai.BadRequestError("bad", response=httpx.Response(400, request=REQUEST), body=None), ProviderRejected),
            (openai.AuthenticationError("nope", response=httpx.Response(401, request=REQUEST), body=None), ProviderRejected),
        ],
    )
    async def test_error_translation(self, error, expected):
        client, _ = openai_client(error=error)
        adapter = OpenAIAdapter(client=client)

        with pytest.raises(expected) as exc_info:
            await adapter.invoke(make_request(), ProviderConfig())

        assert exc_info.value.provider_id == "openai"
        assert exc_info.value.__cause__ is error

    def test_aimlapi_defaults(self, monkeypatch):
        monkeypatch.delenv("AIMLAPI_KEY", raising=False)
        adapter = AIMLAPIAdapter(api_key="k")

        assert adapter.provider_id == "aimlapi"
        assert adapter.model == "gpt-4o-mini"
        assert adapter._base_url == "https://api.aimlapi.com/v1"
        with pytest.raises(ValueError):
            AIMLAPIAdapter()


# ============================================================================
# Test: Anthropic adapter
# ============================================================================

class TestAnthropicAdapter:
    """Test Anthropic adapter against a fake client."""

    def make(self, response=None, error=None):
        messages = FakeCreate(response, error)
        return AnthropicAdapter(client=SimpleNamespace(messages=messages)), messages

    @pytest.mark.asyncio
    async def test_invoke(self):
        response = SimpleNamespace(
            id="msg_1",
            model="claude-3-sonnet-20240229",
            content=[SimpleNamespace(type="text", text="hel"), SimpleNamespace(type="text", text="lo")],
            usage=SimpleNamespace(input_tokens=50, output_tokens=10),
            stop_reason="end_turn",
        )
        adapter, messages = self.make(response)

        result = await adapter.invoke(make_request(), ProviderConfig(temperature=1.5, max_tokens=9000))

        assert result.content == "hello"
        assert result.usage.total_units == 60
        assert result.confidence == 0.8
        assert messages.params["max_tokens"] == 4096
        assert messages.params["temperature"] == 1.0
        assert messages.params["system"] == DEFAULT_SYSTEM_PROMPT

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,expected",
        [
            (anthropic.APIConnectionError(request=REQUEST), ProviderUnavailable),
            (anthropic.RateLimitError("slow", response=httpx.Response(429, request=REQUEST), body=None), ProviderUnavailable),
            (anthropic.BadRequestError("bad", response=httpx.Response(400, request=REQUEST), body=None), ProviderRejected),
        ],
    )
    async def test_error_translation(self, error, expected):
        adapter, _ = self.make(error=error)

        with pytest.raises(expected):
            await adapter.invoke(make_request(), ProviderConfig())


# ============================================================================
# Test: REST adapters
# ============================================================================

class TestGoogleAdapter:
    """Test Gemini payload building and response parsing."""

    def test_build_payload(self):
        adapter = GoogleAdapter(api_key="k")

        payload = adapter.build_payload("sys", "user", ProviderConfig(max_tokens=100))

        assert payload["systemInstruction"]["parts"][0]["text"] == "sys"
        assert payload["contents"][0]["parts"][0]["text"] == "user"
        assert payload["generationConfig"]["maxOutputTokens"] == 100

    def test_parse_response(self):
        adapter = GoogleAdapter(api_key="k")
        body = {
            "candidates": [{"content": {"parts": [{"text": "Hola"}]}, "finishReason": "STOP"}],
            "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 4, "totalTokenCount": 16},
        }

        raw = adapter.parse_response(body, "gemini-pro")

        assert raw.content == "Hola"
        assert raw.finish_reason == "STOP"
        assert raw.usage.total_units == 16

    def test_blocked_prompt_is_rejected(self):
        adapter = GoogleAdapter(api_key="k")

        with pytest.raises(ProviderRejected):
            adapter.parse_response({"promptFeedback": {"blockReason": "SAFETY"}}, "gemini-pro")


class TestLocalModelAdapter:
    """Test the self-hosted adapter with a patched transport."""

    @pytest.mark.asyncio
    async def test_ollama(self, monkeypatch):
        sent = {}

        async def fake_post(provider_id, url, payload, timeout_seconds, **kwargs):
            sent.update(url=url, payload=payload)
            return {"response": "summary", "done": True, "prompt_eval_count": 30, "eval_count": 40}

        monkeypatch.setattr(local_module, "post_json", fake_post)
        adapter = LocalModelAdapter(model="mistral-7b")

        result = await adapter.invoke(make_request(), ProviderConfig())

        assert sent["url"] == "http://localhost:11434/api/generate"
        assert sent["payload"]["model"] == "mistral-7b"
        assert result.cost_units == 0.0
        assert result.cost_unknown is False
        assert result.finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_openai_compatible(self, monkeypatch):
        async def fake_post(provider_id, url, payload, timeout_seconds, **kwargs):
            assert url == "http://vllm:8000/v1/chat/completions"
            return {"choices": [{"message": {"content": "done"}, "finish_reason": "stop"}]}

        monkeypatch.setattr(local_module, "post_json", fake_post)
        adapter = LocalModelAdapter(endpoint="http://vllm:8000/", api_type="openai-compatible")

        result = await adapter.invoke(make_request(), ProviderConfig())

        assert result.content == "done"
        assert result.cost_unknown is True

    def test_unknown_api_type(self):
        with pytest.raises(ValueError):
            LocalModelAdapter(api_type="grpc")


# ============================================================================
# Test: registry
# ============================================================================

class TestProviderRegistry:
    """Test adapter registration and lookup."""

    def test_register_assigns_provider_id(self):
        adapter = ScriptedAdapter()
        registry = ProviderRegistry()

        registry.register_adapter("openai", adapter)

        assert adapter.provider_id == "openai"
        assert "openai" in registry
        assert registry.get_adapter("openai") is adapter

    def test_unknown_provider(self):
        with pytest.raises(ProviderNotRegistered):
            ProviderRegistry().get_adapter("missing")

    def test_filter_available_keeps_order(self):
        registry = ProviderRegistry({"a": ScriptedAdapter(), "b": ScriptedAdapter()})

        assert registry.filter_available(["b", "x", "a", "b"]) == ["b", "a"]

    def test_unregister(self):
        registry = ProviderRegistry({"a": ScriptedAdapter()})

        registry.unregister("a")

        assert len(registry) == 0

    def test_from_settings_only_configured(self):
        settings = OrchestrationSettings(
            _env_file=None,
            anthropic_api_key="ak",
            aimlapi_api_key="mk",
            local_endpoint="http://localhost:11434",
        )

        registry = ProviderRegistry.from_settings(settings)

        assert registry.provider_ids == ["anthropic", "aimlapi", "local"]
        assert isinstance(registry.get_adapter("aimlapi"), AIMLAPIAdapter)

    @pytest.mark.asyncio
    async def test_health_of_missing_provider(self):
        health = await ProviderRegistry().check_health("missing")

        assert health["healthy"] is False
