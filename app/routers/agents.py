# =============================================================================
# app/routers/agents.py - Agent Configuration Endpoints
# =============================================================================
# Agents and prompt overrides are read by any signed-in user; changing them
# and probing providers is admin-only.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from agents.providers import ModelConfig, get_provider_service
from app.auth import AuthUser, get_current_user, require_admin
from core.models.agent import (
    AgentConfig,
    AgentPrompt,
    AgentPromptUpdate,
    AgentUpdate,
    ProviderName,
    ProviderTestRequest,
)
from core.services.agent_service import AgentService

logger = logging.getLogger(__name__)

router = APIRouter()

AgentId = Annotated[str, Path(description="Agent id, e.g. agent-amazon-listings")]


# =============================================================================
# Providers and Models
# =============================================================================

@router.get("/models", response_model=list[ModelConfig])
async def list_models(
    provider: Annotated[ProviderName | None, Query(description="Limit to one provider")] = None,
    user: AuthUser = Depends(get_current_user),
):
    """Known models with their per-1M-token prices."""
    return get_provider_service().available_models(provider)


@router.get("/providers/status")
async def provider_status(user: AuthUser = Depends(require_admin)):
    """Which providers have an API key configured."""
    return get_provider_service().provider_status()


@router.post("/providers/test")
async def test_provider(
    request: ProviderTestRequest,
    user: AuthUser = Depends(require_admin),
):
    """
    Send a short prompt to a provider/model pair.

    Not metered; meant for admins checking keys after configuration changes.
    """
    response = get_provider_service().test_provider(request.provider, request.model, request.prompt)
    logger.info(f"Provider test {request.provider.value}/{request.model} by {user.id}: {response.duration_ms}ms")
    return {
        "success": True,
        "provider": response.provider,
        "model": response.model,
        "content": response.content,
        "usage": {
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
            "total_tokens": response.usage.total_tokens,
        },
        "cost_usd": response.cost,
        "duration_ms": response.duration_ms,
    }


# =============================================================================
# Agents
# =============================================================================

@router.get("", response_model=list[AgentConfig])
async def list_agents(
    include_inactive: Annotated[bool, Query(description="Include disabled agents")] = False,
    user: AuthUser = Depends(get_current_user),
):
    return AgentService.list_agents(include_inactive=include_inactive and user.is_admin)


@router.get("/{agent_id}", response_model=AgentConfig)
async def get_agent(agent_id: AgentId, user: AuthUser = Depends(get_current_user)):
    return AgentService.get_agent(agent_id)


@router.patch("/{agent_id}", response_model=AgentConfig)
async def update_agent(
    agent_id: AgentId,
    payload: AgentUpdate,
    user: AuthUser = Depends(require_admin),
):
    """
    Change an agent's provider, model or generation settings.

    The provider/model pair is validated against the known models.
    """
    return AgentService.update_agent(agent_id, payload)


# =============================================================================
# Prompt Overrides
# =============================================================================

@router.get("/{agent_id}/prompts", response_model=list[AgentPrompt])
async def list_prompts(agent_id: AgentId, user: AuthUser = Depends(require_admin)):
    AgentService.get_agent(agent_id)
    return AgentService.list_prompts(agent_id)


@router.put("/{agent_id}/prompts/{prompt_type}", response_model=AgentPrompt)
async def upsert_prompt(
    agent_id: AgentId,
    prompt_type: Annotated[str, Path(description="Prompt slot, e.g. titles")],
    payload: AgentPromptUpdate,
    user: AuthUser = Depends(require_admin),
):
    """
    Replace the built-in template for one prompt slot.

    Templates use $placeholders (e.g. $product_name, $reviews_insight).
    Set is_active=false to fall back to the built-in template.
    """
    return AgentService.upsert_prompt(agent_id, prompt_type, payload)
