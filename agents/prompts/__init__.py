# =============================================================================
# agents/prompts/ - Prompt Templates for AI Agents
# =============================================================================
# - listing_prompts.py: Amazon Listing Optimizer step prompts
#
# Prompts are organized with XML tags for clear structure.
# =============================================================================

from agents.prompts.listing_prompts import (
    LISTING_SYSTEM_PROMPT,
    STEP_PROMPT_TYPES,
    STEP_PROMPTS,
    build_step_prompt,
)

__all__ = [
    "LISTING_SYSTEM_PROMPT",
    "STEP_PROMPT_TYPES",
    "STEP_PROMPTS",
    "build_step_prompt",
]
