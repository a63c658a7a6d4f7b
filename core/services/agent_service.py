# =============================================================================
# core/services/agent_service.py - Agent Configuration
# =============================================================================
# Reads and updates the `agents` table (provider/model/temperature per AI
# feature) and the `agent_prompts` table (admin overrides of the built-in
# prompt templates).
# =============================================================================

import logging
from typing import Any

from app.config import settings
from app.exceptions import InvalidPayloadError, ResourceNotFoundError, UnsupportedModelError
from agents.providers import MODEL_CONFIGS
from core.models.agent import AgentConfig, AgentPrompt, AgentPromptUpdate, AgentUpdate, ProviderName
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

AGENTS_TABLE = "agents"
AGENT_PROMPTS_TABLE = "agent_prompts"


class AgentService:
    """Service for agent configuration and prompt overrides."""

    @staticmethod
    def list_agents(include_inactive: bool = False) -> list[AgentConfig]:
        filters = {} if include_inactive else {"is_active": True}
        rows, _ = SupabaseClient.fetch_many(AGENTS_TABLE, filters=filters, order_by="name", desc=False)
        return [AgentConfig(**row) for row in rows]

    @staticmethod
    def get_agent(agent_id: str) -> AgentConfig:
        """
        Raises:
            ResourceNotFoundError: If the agent doesn't exist
        """
        row = SupabaseClient.fetch_one(AGENTS_TABLE, {"id": agent_id})
        if not row:
            raise ResourceNotFoundError("agent", agent_id)
        return AgentConfig(**row)

    @staticmethod
    def get_agent_or_default(agent_id: str) -> AgentConfig:
        """
        Get an agent's configuration, falling back to OpenAI defaults.

        New deployments work before an admin has created the agent row.
        """
        row = SupabaseClient.fetch_one(AGENTS_TABLE, {"id": agent_id})
        if row:
            return AgentConfig(**row)

        logger.warning(f"Agent {agent_id} not configured, using {settings.OPENAI_MODEL}")
        return AgentConfig(
            id=agent_id,
            name=agent_id,
            provider=ProviderName.OPENAI,
            model=settings.OPENAI_MODEL,
            temperature=settings.DEFAULT_AI_TEMPERATURE,
            max_tokens=settings.DEFAULT_AI_MAX_TOKENS,
        )

    @staticmethod
    def update_agent(agent_id: str, payload: AgentUpdate) -> AgentConfig:
        """
        Apply a partial update.

        Raises:
            ResourceNotFoundError: If the agent doesn't exist
            UnsupportedModelError: If the resulting provider/model pair is invalid
        """
        current = AgentService.get_agent(agent_id)
        changes: dict[str, Any] = payload.model_dump(mode="json", exclude_unset=True)
        if not changes:
            return current

        provider = ProviderName(changes.get("provider", current.provider))
        model = changes.get("model", current.model)
        config = MODEL_CONFIGS.get(model)
        if config is None or config.provider != provider:
            raise UnsupportedModelError(model, provider.value)

        changes["updated_at"] = utc_now_iso()
        rows = SupabaseClient.update_rows(AGENTS_TABLE, changes, {"id": agent_id})
        logger.info(f"Updated agent {agent_id}: {sorted(changes)}")
        return AgentConfig(**rows[0]) if rows else current.model_copy(update=changes)

    # -------------------------------------------------------------------------
    # Prompt overrides
    # -------------------------------------------------------------------------

    @staticmethod
    def list_prompts(agent_id: str) -> list[AgentPrompt]:
        rows, _ = SupabaseClient.fetch_many(
            AGENT_PROMPTS_TABLE,
            filters={"agent_id": agent_id},
            order_by="prompt_type",
            desc=False,
        )
        return [AgentPrompt(**row) for row in rows]

    @staticmethod
    def upsert_prompt(agent_id: str, prompt_type: str, payload: AgentPromptUpdate) -> AgentPrompt:
        """Create or replace the override for one prompt slot."""
        if not prompt_type.strip():
            raise InvalidPayloadError("prompt_type must not be empty")

        AgentService.get_agent(agent_id)
        filters = {"agent_id": agent_id, "prompt_type": prompt_type}
        data = {"content": payload.content, "is_active": payload.is_active}

        existing = SupabaseClient.fetch_one(AGENT_PROMPTS_TABLE, filters)
        if existing:
            rows = SupabaseClient.update_rows(
                AGENT_PROMPTS_TABLE,
                {**data, "updated_at": utc_now_iso()},
                {"id": existing["id"]},
            )
            row = rows[0] if rows else {**existing, **data}
        else:
            row = SupabaseClient.insert_row(AGENT_PROMPTS_TABLE, {**filters, **data})

        logger.info(f"Saved prompt override {agent_id}/{prompt_type}")
        return AgentPrompt(**row)

    @staticmethod
    def resolve_prompt(agent_id: str, prompt_type: str, default: str | None = None) -> str | None:
        """Active override text for a prompt slot, falling back to `default`."""
        row = SupabaseClient.fetch_one(
            AGENT_PROMPTS_TABLE,
            {"agent_id": agent_id, "prompt_type": prompt_type, "is_active": True},
        )
        return row["content"] if row else default
