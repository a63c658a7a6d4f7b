# =============================================================================
# tests/test_providers.py - AI Provider Abstraction Tests
# =============================================================================
# This module contains tests for:
# - Cost arithmetic and token estimation
# - Model/provider validation
# - Dispatch to each vendor SDK (mocked; no network, no API costs)
# - Error wrapping (vendor failures -> AIProviderError)
# =============================================================================

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from agents.providers import (
    MODEL_CONFIGS,
    AIMessage,
    AIProviderError,
    AIProviderService,
    AIRequest,
    TokenUsage,
    calculate_cost,
    estimate_tokens,
    split_system_prompt,
)
from app.config import settings
from app.exceptions import ProviderNotConfiguredError, UnsupportedModelError
from core.models.agent import ProviderName


def _request(provider: str, model: str, **kwargs) -> AIRequest:
    return AIRequest(
        provider=provider,
        model=model,
        messages=[
            AIMessage(role="system", content="You are a copywriter."),
            AIMessage(role="user", content="Write a title."),
        ],
        **kwargs,
    )


def _chat_response(content: str, prompt_tokens: int, completion_tokens: int) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


# =============================================================================
# Helpers
# =============================================================================

class TestCostAndTokens:
    """Tests for calculate_cost / estimate_tokens / split_system_prompt."""

    def test_cost_per_million(self):
        assert calculate_cost("gpt-4o", 1_000_000, 1_000_000) == pytest.approx(20.0)

    def test_cost_small_call(self):
        # 1000 in @ $0.15/M + 500 out @ $0.60/M
        assert calculate_cost("gpt-4o-mini", 1000, 500) == pytest.approx(0.00045)

    def test_cost_unknown_model(self):
        with pytest.raises(UnsupportedModelError):
            calculate_cost("gpt-99", 1, 1)

    @pytest.mark.parametrize("text,expected", [("", 0), ("abc", 1), ("abcd", 1), ("abcde", 2)])
    def test_estimate_tokens_rounds_up(self, text, expected):
        assert estimate_tokens(text) == expected

    def test_split_system_prompt(self):
        system, turns = split_system_prompt([
            AIMessage(role="system", content="A"),
            AIMessage(role="user", content="hi"),
            AIMessage(role="system", content="B"),
        ])

        assert system == "A\n\nB"
        assert [m.content for m in turns] == ["hi"]

    def test_every_provider_has_models(self):
        providers = {config.provider for config in MODEL_CONFIGS.values()}
        assert providers == set(ProviderName)


# =============================================================================
# Validation
# =============================================================================

class TestValidation:
    """Requests are validated before any SDK is touched."""

    def test_unknown_model(self):
        service = AIProviderService()

        with pytest.raises(UnsupportedModelError) as exc_info:
            service.generate_completion(_request("openai", "gpt-99"))

        assert exc_info.value.status_code == 400

    def test_model_of_other_provider(self):
        service = AIProviderService()

        with pytest.raises(UnsupportedModelError) as exc_info:
            service.generate_completion(_request("openai", "claude-3-haiku-20240307"))

        assert exc_info.value.details["provider"] == "openai"

    def test_unconfigured_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", None)
        service = AIProviderService()

        with pytest.raises(ProviderNotConfiguredError) as exc_info:
            service.generate_completion(_request("anthropic", "claude-3-haiku-20240307"))

        assert exc_info.value.status_code == 503

    def test_provider_status(self, monkeypatch):
        monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
        monkeypatch.setattr(settings, "DEEPSEEK_API_KEY", "sk-deepseek")

        status = AIProviderService().provider_status()

        assert status["openai"] is True
        assert status["gemini"] is False
        assert status["deepseek"] is True

    def test_available_models_filter(self):
        models = AIProviderService().available_models(ProviderName.DEEPSEEK)

        assert {m.model for m in models} == {"deepseek-chat", "deepseek-coder"}

    def test_model_token_limits(self):
        assert MODEL_CONFIGS["gpt-4o-mini"].max_tokens == 128_000
        assert MODEL_CONFIGS["gemini-1.5-pro"].max_tokens == 2_000_000

    def test_usage_total_is_serialized(self):
        usage = TokenUsage(input_tokens=1000, output_tokens=500)

        assert usage.model_dump() == {"input_tokens": 1000, "output_tokens": 500, "total_tokens": 1500}


# =============================================================================
# Dispatch (mocked SDKs)
# =============================================================================

class TestDispatch:
    """Each provider goes through its own SDK."""

    def test_openai(self):
        with patch("agents.providers.OpenAI") as mock_openai:
            client = mock_openai.return_value
            client.chat.completions.create.return_value = _chat_response("Great Title", 1000, 500)

            response = AIProviderService().generate_completion(_request("openai", "gpt-4o-mini"))

        mock_openai.assert_called_once_with(api_key=settings.OPENAI_API_KEY)
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][0] == {"role": "system", "content": "You are a copywriter."}
        assert kwargs["temperature"] == settings.DEFAULT_AI_TEMPERATURE
        assert kwargs["max_tokens"] == settings.DEFAULT_AI_MAX_TOKENS

        assert response.content == "Great Title"
        assert response.usage.total_tokens == 1500
        assert response.cost == pytest.approx(0.00045)
        assert response.provider == ProviderName.OPENAI

    def test_deepseek_uses_openai_sdk_with_base_url(self, monkeypatch):
        monkeypatch.setattr(settings, "DEEPSEEK_API_KEY", "sk-deepseek")

        with patch("agents.providers.OpenAI") as mock_openai:
            mock_openai.return_value.chat.completions.create.return_value = _chat_response("ok", 10, 2)

            response = AIProviderService().generate_completion(
                _request("deepseek", "deepseek-chat", temperature=0.2, max_tokens=100)
            )

        mock_openai.assert_called_once_with(api_key="sk-deepseek", base_url=settings.DEEPSEEK_BASE_URL)
        kwargs = mock_openai.return_value.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 100
        assert response.provider == ProviderName.DEEPSEEK

    def test_anthropic_passes_system_separately(self, monkeypatch):
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "sk-ant")

        with patch("agents.providers.anthropic.Anthropic") as mock_anthropic:
            mock_anthropic.return_value.messages.create.return_value = SimpleNamespace(
                content=[SimpleNamespace(type="text", text="Claude title")],
                usage=SimpleNamespace(input_tokens=200, output_tokens=100),
            )

            response = AIProviderService().generate_completion(
                _request("anthropic", "claude-3-haiku-20240307")
            )

        kwargs = mock_anthropic.return_value.messages.create.call_args.kwargs
        assert kwargs["system"] == "You are a copywriter."
        assert kwargs["messages"] == [{"role": "user", "content": "Write a title."}]
        assert response.content == "Claude title"
        assert response.usage.input_tokens == 200
        # 200 @ $0.25/M + 100 @ $1.25/M
        assert response.cost == pytest.approx(0.000175)

    def test_gemini_renames_roles_and_estimates_usage(self, monkeypatch):
        monkeypatch.setattr(settings, "GEMINI_API_KEY", "gm-key")
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(
            text="Gemini title",
            usage_metadata=None,
        )

        service = AIProviderService()
        service._clients[ProviderName.GEMINI] = client

        request = AIRequest(
            provider="gemini",
            model="gemini-1.5-flash",
            messages=[
                AIMessage(role="system", content="sys"),
                AIMessage(role="user", content="hello"),
                AIMessage(role="assistant", content="hi"),
                AIMessage(role="user", content="title please"),
            ],
        )
        response = service.generate_completion(request)

        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-1.5-flash"
        assert kwargs["config"].system_instruction == "sys"
        assert kwargs["config"].max_output_tokens == settings.DEFAULT_AI_MAX_TOKENS
        assert [c["role"] for c in kwargs["contents"]] == ["user", "model", "user"]
        assert kwargs["contents"][1]["parts"] == [{"text": "hi"}]

        prompt_text = "sys" + "hello" + "hi" + "title please"
        assert response.usage.input_tokens == estimate_tokens(prompt_text)
        assert response.usage.output_tokens == estimate_tokens("Gemini title")

    def test_vendor_failure_is_wrapped(self):
        with patch("agents.providers.OpenAI") as mock_openai:
            mock_openai.return_value.chat.completions.create.side_effect = RuntimeError("rate limited")

            with pytest.raises(AIProviderError) as exc_info:
                AIProviderService().generate_completion(_request("openai", "gpt-4o-mini"))

        assert exc_info.value.status_code == 502
        assert exc_info.value.code == "AI_PROVIDER_ERROR"
        assert "rate limited" in exc_info.value.message

    def test_clients_are_reused(self):
        with patch("agents.providers.OpenAI") as mock_openai:
            mock_openai.return_value.chat.completions.create.return_value = _chat_response("x", 1, 1)
            service = AIProviderService()

            service.generate_completion(_request("openai", "gpt-4o-mini"))
            service.generate_completion(_request("openai", "gpt-4o-mini"))

        assert mock_openai.call_count == 1
