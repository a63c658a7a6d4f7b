# =============================================================================
# core/models/agent.py - Agent Configuration Schemas
# =============================================================================
# An agent row configures which provider/model an AI feature uses.
# agent_prompts rows may override the built-in prompt templates.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class ProviderName(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"


class AgentConfig(BaseModel):
    """
    Example:
        {
            "id": "agent-amazon-listings",
            "name": "Amazon Listing Optimizer",
            "provider": "openai",
            "model": "gpt-4o-mini",
            "temperature": 0.7,
            "max_tokens": 4000
        }
    """
    id: str
    name: str
    description: str | None = None
    provider: ProviderName = ProviderName.OPENAI
    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, ge=1)
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AgentUpdate(BaseModel):
    """Partial update; only fields that are set are written."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    provider: ProviderName | None = None
    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)
    is_active: bool | None = None


class AgentPrompt(BaseModel):
    id: UUID | None = None
    agent_id: str
    prompt_type: str = Field(..., description="Template slot, e.g. titles")
    content: str
    is_active: bool = True


class AgentPromptUpdate(BaseModel):
    content: str = Field(..., min_length=1)
    is_active: bool = True


class ProviderTestRequest(BaseModel):
    provider: ProviderName
    model: str
    prompt: str = Field(default="Reply with the single word: ok", max_length=2000)


class GenerationLog(BaseModel):
    """One row of ai_generation_logs."""
    id: UUID | None = None
    user_id: UUID
    provider: str
    model: str
    feature: str
    prompt: str | None = None
    response: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0
    duration_ms: int = 0
    credits_used: int = 0
    created_at: datetime | None = None
