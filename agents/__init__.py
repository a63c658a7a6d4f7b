# =============================================================================
# agents/ - AI Agent Definitions
# =============================================================================
# - providers.py: AI provider abstraction (OpenAI, Anthropic, Gemini, DeepSeek)
# - listing_optimizer.py: Amazon Listing Optimizer (4-step pipeline)
# - prompts/: prompt templates
#
# Import the listing optimizer from its module directly; it depends on the
# core services, which themselves import providers from this package.
# =============================================================================

from agents.providers import (
    MODEL_CONFIGS,
    AIMessage,
    AIProviderError,
    AIProviderService,
    AIRequest,
    AIResponse,
    ModelConfig,
    get_provider_service,
)

__all__ = [
    "MODEL_CONFIGS",
    "AIMessage",
    "AIProviderError",
    "AIProviderService",
    "AIRequest",
    "AIResponse",
    "ModelConfig",
    "get_provider_service",
]
