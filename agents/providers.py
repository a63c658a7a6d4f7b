# =============================================================================
# agents/providers.py - AI Provider Abstraction
# =============================================================================
# One entry point, `AIProviderService.generate_completion`, for every LLM the
# platform can use. The request names a provider and a model; the service
# validates the pair against MODEL_CONFIGS and dispatches to the matching
# vendor SDK:
#   - openai    -> openai SDK
#   - anthropic -> anthropic SDK (system prompt passed separately)
#   - gemini    -> google-genai (assistant role renamed to "model")
#   - deepseek  -> openai SDK pointed at the DeepSeek base URL
#
# Every response carries token usage and a USD cost computed from the
# per-million-token prices below. There is no retry or fallback between
# providers: a vendor failure surfaces as AIProviderError.
#
# Usage:
#   from agents.providers import AIRequest, get_provider_service
#   response = get_provider_service().generate_completion(AIRequest(
#       provider="openai",
#       model="gpt-4o-mini",
#       messages=[{"role": "user", "content": "Write a product title"}],
#   ))
#   print(response.content, response.cost)
# =============================================================================

from __future__ import annotations

import logging
import math
import time
from functools import lru_cache
from typing import Any, Callable, Literal

import anthropic
from google import genai
from google.genai import types as genai_types
from openai import OpenAI
from pydantic import BaseModel, Field, computed_field

from app.config import settings
from app.exceptions import ExternalServiceError, ProviderNotConfiguredError, UnsupportedModelError
from core.models.agent import ProviderName

logger = logging.getLogger(__name__)


# =============================================================================
# Model Catalog
# =============================================================================

class ModelConfig(BaseModel):
    """Pricing and limits for one model. Prices are USD per 1M tokens."""
    provider: ProviderName
    model: str
    input_cost_per_1m: float
    output_cost_per_1m: float
    max_tokens: int = Field(..., description="Context window in tokens")


def _model(provider: ProviderName, model: str, input_cost: float, output_cost: float, max_tokens: int) -> ModelConfig:
    return ModelConfig(
        provider=provider,
        model=model,
        input_cost_per_1m=input_cost,
        output_cost_per_1m=output_cost,
        max_tokens=max_tokens,
    )


MODEL_CONFIGS: dict[str, ModelConfig] = {
    config.model: config
    for config in (
        # OpenAI
        _model(ProviderName.OPENAI, "gpt-4o", 5.00, 15.00, 128_000),
        _model(ProviderName.OPENAI, "gpt-4o-mini", 0.15, 0.60, 128_000),
        _model(ProviderName.OPENAI, "gpt-4-turbo", 10.00, 30.00, 128_000),
        _model(ProviderName.OPENAI, "gpt-3.5-turbo", 0.50, 1.50, 16_385),
        # Anthropic
        _model(ProviderName.ANTHROPIC, "claude-sonnet-4-20250514", 3.00, 15.00, 200_000),
        _model(ProviderName.ANTHROPIC, "claude-3-5-sonnet-20241022", 3.00, 15.00, 200_000),
        _model(ProviderName.ANTHROPIC, "claude-3-opus-20240229", 15.00, 75.00, 200_000),
        _model(ProviderName.ANTHROPIC, "claude-3-haiku-20240307", 0.25, 1.25, 200_000),
        # Gemini
        _model(ProviderName.GEMINI, "gemini-2.5-pro", 1.25, 5.00, 2_000_000),
        _model(ProviderName.GEMINI, "gemini-2.5-flash", 0.075, 0.30, 1_000_000),
        _model(ProviderName.GEMINI, "gemini-1.5-pro", 1.25, 5.00, 2_000_000),
        _model(ProviderName.GEMINI, "gemini-1.5-flash", 0.075, 0.30, 1_000_000),
        # DeepSeek
        _model(ProviderName.DEEPSEEK, "deepseek-chat", 0.14, 0.28, 64_000),
        _model(ProviderName.DEEPSEEK, "deepseek-coder", 0.14, 0.28, 64_000),
    )
}


# =============================================================================
# Request / Response
# =============================================================================

class AIMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class AIRequest(BaseModel):
    provider: ProviderName
    model: str
    messages: list[AIMessage] = Field(..., min_length=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class AIResponse(BaseModel):
    content: str
    usage: TokenUsage
    cost: float = Field(..., description="USD cost of this call")
    provider: ProviderName
    model: str
    duration_ms: int = 0


class AIProviderError(ExternalServiceError):
    """Raised when the vendor SDK call fails."""

    def __init__(self, provider: str, model: str, error: str):
        super().__init__(
            service=f"{provider}:{model}",
            error=error,
            code="AI_PROVIDER_ERROR",
            suggestion="Retry the request or configure the agent with another model",
        )


# =============================================================================
# Helpers
# =============================================================================

def estimate_tokens(text: str) -> int:
    """Rough token count (4 characters per token) for SDKs that omit usage."""
    return math.ceil(len(text) / 4)


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """
    USD cost for a call.

    Example:
        calculate_cost("gpt-4o", 1_000_000, 1_000_000)  # 20.0
    """
    config = MODEL_CONFIGS.get(model)
    if config is None:
        raise UnsupportedModelError(model)
    return (
        input_tokens / 1_000_000 * config.input_cost_per_1m
        + output_tokens / 1_000_000 * config.output_cost_per_1m
    )


def split_system_prompt(messages: list[AIMessage]) -> tuple[str | None, list[AIMessage]]:
    """Separate system messages (joined) from the conversation turns."""
    system_parts = [m.content for m in messages if m.role == "system"]
    turns = [m for m in messages if m.role != "system"]
    return ("\n\n".join(system_parts) or None), turns


# =============================================================================
# Provider Service
# =============================================================================

class AIProviderService:
    """
    Dispatches completion requests to vendor SDKs.

    SDK clients are created on first use, so a provider without an API key
    only fails when someone actually selects it.

    Example:
        service = AIProviderService()
        service.provider_status()
        # {"openai": True, "anthropic": False, "gemini": False, "deepseek": True}
    """

    _API_KEY_SETTINGS = {
        ProviderName.OPENAI: "OPENAI_API_KEY",
        ProviderName.ANTHROPIC: "ANTHROPIC_API_KEY",
        ProviderName.GEMINI: "GEMINI_API_KEY",
        ProviderName.DEEPSEEK: "DEEPSEEK_API_KEY",
    }

    def __init__(self):
        self._clients: dict[ProviderName, Any] = {}
        self._handlers: dict[ProviderName, Callable[[AIRequest, float, int], tuple[str, TokenUsage]]] = {
            ProviderName.OPENAI: self._openai_completion,
            ProviderName.ANTHROPIC: self._anthropic_completion,
            ProviderName.GEMINI: self._gemini_completion,
            ProviderName.DEEPSEEK: self._deepseek_completion,
        }

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def generate_completion(self, request: AIRequest) -> AIResponse:
        """
        Run a completion on the requested provider/model.

        Raises:
            UnsupportedModelError: Unknown model or model of another provider
            ProviderNotConfiguredError: Provider has no API key
            AIProviderError: The vendor call failed
        """
        config = MODEL_CONFIGS.get(request.model)
        if config is None:
            raise UnsupportedModelError(request.model)
        if config.provider != request.provider:
            raise UnsupportedModelError(request.model, request.provider.value)

        temperature = request.temperature if request.temperature is not None else settings.DEFAULT_AI_TEMPERATURE
        max_tokens = request.max_tokens or settings.DEFAULT_AI_MAX_TOKENS

        handler = self._handlers[request.provider]
        started = time.perf_counter()

        try:
            content, usage = handler(request, temperature, max_tokens)
        except (ProviderNotConfiguredError, AIProviderError):
            raise
        except Exception as e:
            logger.error(f"{request.provider.value} completion failed for {request.model}: {e}")
            raise AIProviderError(request.provider.value, request.model, str(e))

        duration_ms = int((time.perf_counter() - started) * 1000)
        cost = calculate_cost(request.model, usage.input_tokens, usage.output_tokens)

        logger.info(
            f"{request.provider.value}/{request.model}: "
            f"{usage.input_tokens}+{usage.output_tokens} tokens, ${cost:.6f}, {duration_ms}ms"
        )

        return AIResponse(
            content=content,
            usage=usage,
            cost=cost,
            provider=request.provider,
            model=request.model,
            duration_ms=duration_ms,
        )

    def available_models(self, provider: ProviderName | None = None) -> list[ModelConfig]:
        """All known models, optionally limited to one provider."""
        return [
            config for config in MODEL_CONFIGS.values()
            if provider is None or config.provider == provider
        ]

    def provider_status(self) -> dict[str, bool]:
        """Which providers have an API key configured."""
        return {
            provider.value: bool(getattr(settings, setting_name))
            for provider, setting_name in self._API_KEY_SETTINGS.items()
        }

    def test_provider(self, provider: ProviderName, model: str, prompt: str) -> AIResponse:
        """Send a tiny prompt to check that a provider/model pair works."""
        return self.generate_completion(AIRequest(
            provider=provider,
            model=model,
            messages=[AIMessage(role="user", content=prompt)],
            max_tokens=50,
        ))

    # -------------------------------------------------------------------------
    # Clients
    # -------------------------------------------------------------------------

    def _api_key(self, provider: ProviderName) -> str:
        setting_name = self._API_KEY_SETTINGS[provider]
        api_key = getattr(settings, setting_name)
        if not api_key:
            raise ProviderNotConfiguredError(provider.value, setting_name)
        return api_key

    def _get_client(self, provider: ProviderName) -> Any:
        if provider not in self._clients:
            api_key = self._api_key(provider)
            if provider == ProviderName.OPENAI:
                self._clients[provider] = OpenAI(api_key=api_key)
            elif provider == ProviderName.DEEPSEEK:
                self._clients[provider] = OpenAI(api_key=api_key, base_url=settings.DEEPSEEK_BASE_URL)
            elif provider == ProviderName.ANTHROPIC:
                self._clients[provider] = anthropic.Anthropic(api_key=api_key)
            elif provider == ProviderName.GEMINI:
                self._clients[provider] = genai.Client(api_key=api_key)
            logger.info(f"{provider.value} client initialized")
        return self._clients[provider]

    # -------------------------------------------------------------------------
    # Vendor calls
    # -------------------------------------------------------------------------

    def _chat_completions(self, provider: ProviderName, request: AIRequest, temperature: float, max_tokens: int) -> tuple[str, TokenUsage]:
        client = self._get_client(provider)
        response = client.chat.completions.create(
            model=request.model,
            messages=[m.model_dump() for m in request.messages],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        content = response.choices[0].message.content or ""
        usage = TokenUsage(
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
        )
        return content, usage

    def _openai_completion(self, request: AIRequest, temperature: float, max_tokens: int) -> tuple[str, TokenUsage]:
        return self._chat_completions(ProviderName.OPENAI, request, temperature, max_tokens)

    def _deepseek_completion(self, request: AIRequest, temperature: float, max_tokens: int) -> tuple[str, TokenUsage]:
        return self._chat_completions(ProviderName.DEEPSEEK, request, temperature, max_tokens)

    def _anthropic_completion(self, request: AIRequest, temperature: float, max_tokens: int) -> tuple[str, TokenUsage]:
        client = self._get_client(ProviderName.ANTHROPIC)
        system, turns = split_system_prompt(request.messages)

        kwargs: dict[str, Any] = {
            "model": request.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": m.role, "content": m.content} for m in turns],
        }
        if system:
            kwargs["system"] = system

        response = client.messages.create(**kwargs)
        content = "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )
        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return content, usage

    def _gemini_completion(self, request: AIRequest, temperature: float, max_tokens: int) -> tuple[str, TokenUsage]:
        client = self._get_client(ProviderName.GEMINI)
        system, turns = split_system_prompt(request.messages)

        contents = [
            {"role": "model" if m.role == "assistant" else "user", "parts": [{"text": m.content}]}
            for m in turns
        ]
        response = client.models.generate_content(
            model=request.model,
            contents=contents,
            config=genai_types.GenerateContentConfig(
                system_instruction=system,
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        )
        content = response.text or ""

        metadata = getattr(response, "usage_metadata", None)
        if metadata and getattr(metadata, "prompt_token_count", None):
            usage = TokenUsage(
                input_tokens=metadata.prompt_token_count,
                output_tokens=metadata.candidates_token_count or 0,
            )
        else:
            prompt_text = "".join(m.content for m in request.messages)
            usage = TokenUsage(
                input_tokens=estimate_tokens(prompt_text),
                output_tokens=estimate_tokens(content),
            )
        return content, usage


@lru_cache
def get_provider_service() -> AIProviderService:
    """Shared AIProviderService instance."""
    return AIProviderService()
