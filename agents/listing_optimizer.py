# =============================================================================
# agents/listing_optimizer.py - Amazon Listing Optimizer Agent
# =============================================================================
# Runs the four listing steps for a session:
#   1. analyse competitor reviews
#   2. write titles
#   3. write bullet points
#   4. write the description
#
# Each step is one LLM call. Before the call the agent checks that the
# previous step's output exists and that the user can afford the step;
# after a successful call it debits credits, stores the output and logs
# the generation. A failed call or a failed debit puts the session back to
# active with its previous current_step and stores nothing.
#
# Usage:
#   from agents.listing_optimizer import ListingOptimizerAgent
#   agent = ListingOptimizerAgent()
#   result = agent.run_step(session_id, user, step=1)
# =============================================================================

from __future__ import annotations

import logging
from typing import Callable
from uuid import UUID

from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import (
    InvalidPayloadError,
    ListingSessionAbortedError,
    ListingStepOrderError,
    SellerHubException,
)
from app.websocket.broadcast import publish_listing_progress
from agents.prompts.listing_prompts import (
    LISTING_SYSTEM_PROMPT,
    STEP_PROMPT_TYPES,
    STEP_PROMPTS,
    build_step_prompt,
)
from agents.providers import AIMessage, AIProviderService, AIRequest, get_provider_service
from core.models.listing import FINAL_STEP, LISTING_STEPS, ListingStatus, ListingStepResult
from core.services.agent_service import AgentService
from core.services.credit_service import CreditService
from core.services.generation_log_service import GenerationLogService
from core.services.listing_session_service import ListingSessionService
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)

FEATURE_KEY = "agents.amazon_listing_optimizer"

STEP_MESSAGES = {
    1: "Analysing competitor reviews",
    2: "Writing titles",
    3: "Writing bullet points",
    4: "Writing the description",
}


class ListingOptimizerAgent:
    """
    Orchestrates the listing steps for one session at a time.

    Example:
        agent = ListingOptimizerAgent()
        agent.run_step(session_id, user, step=1)   # reviews_insight
        agent.run_step(session_id, user, step=2)   # titles
        agent.run_remaining(session_id, user)      # steps 3 and 4

    Attributes:
        provider_service: AI provider dispatcher (injectable for tests)
        agent_id: Row in `agents` that selects provider/model/temperature
    """

    def __init__(
        self,
        provider_service: AIProviderService | None = None,
        agent_id: str | None = None,
    ):
        self.provider_service = provider_service or get_provider_service()
        self.agent_id = agent_id or settings.LISTING_AGENT_ID

    # -------------------------------------------------------------------------
    # Main Entry Points
    # -------------------------------------------------------------------------

    def run_step(self, session_id: UUID | str, user: AuthUser, step: int) -> ListingStepResult:
        """
        Process one step of a listing session.

        Args:
            session_id: The listing session UUID
            user: Owner of the session (pays the credits)
            step: Step number, 1-4

        Returns:
            ListingStepResult with the generated text

        Raises:
            InvalidPayloadError: step is not 1-4
            ListingSessionNotFoundError: unknown session or not the owner
            ListingSessionAbortedError: session was aborted
            ListingStepOrderError: previous step has no output yet
            InsufficientCreditsError: balance below the step cost
            AIProviderError / ProviderNotConfiguredError: the LLM call failed
        """
        definition = LISTING_STEPS.get(step)
        if definition is None:
            raise InvalidPayloadError(f"Invalid step: {step}", {"valid_steps": sorted(LISTING_STEPS)})

        session_id = str(session_id)
        session = ListingSessionService.get_session(session_id, user.id)

        if session.get("status") == ListingStatus.ABORTED.value:
            raise ListingSessionAbortedError(session_id)
        if not session.get(definition.requires):
            raise ListingStepOrderError(step, definition.requires)

        CreditService.require_access(user, FEATURE_KEY)

        agent = AgentService.get_agent_or_default(self.agent_id)
        template = AgentService.resolve_prompt(self.agent_id, STEP_PROMPT_TYPES[step], default=STEP_PROMPTS[step])
        prompt = build_step_prompt(step, session, template)
        previous_step = session.get("current_step") or 0

        ListingSessionService.mark_processing(session_id, step)
        publish_listing_progress(session_id, step, "processing", f"{STEP_MESSAGES[step]}...")
        logger.info(f"Listing session {session_id}: step {step} on {agent.provider.value}/{agent.model}")

        try:
            response = self.provider_service.generate_completion(AIRequest(
                provider=agent.provider,
                model=agent.model,
                messages=[
                    AIMessage(role="system", content=LISTING_SYSTEM_PROMPT),
                    AIMessage(role="user", content=prompt),
                ],
                temperature=agent.temperature,
                max_tokens=agent.max_tokens,
            ))
        except SellerHubException as e:
            self._fail_step(session_id, step, previous_step, e.message)
            raise

        # The output is stored only once the step has been paid for
        try:
            debit = CreditService.debit(
                user,
                FEATURE_KEY,
                description=f"Amazon listing step {step} ({definition.name})",
                reference_id=session_id,
            )
        except (SellerHubException, SupabaseClientError) as e:
            self._fail_step(session_id, step, previous_step, e.message)
            raise

        try:
            updated = ListingSessionService.save_step_output(
                session_id,
                step,
                definition.output,
                response.content,
                provider=response.provider.value,
                model=response.model,
            )
        except (SellerHubException, SupabaseClientError) as e:
            if debit.charged:
                CreditService.credit(
                    user.id,
                    debit.charged,
                    f"Refund: Amazon listing step {step} could not be saved",
                    reference_id=session_id,
                )
            self._fail_step(session_id, step, previous_step, e.message)
            raise

        GenerationLogService.record(
            user_id=user.id,
            provider=response.provider.value,
            model=response.model,
            feature=f"amazon_listing.{definition.name}",
            prompt=prompt,
            response=response.content,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            cost_usd=response.cost,
            duration_ms=response.duration_ms,
            credits_used=debit.charged,
        )

        publish_listing_progress(session_id, step, "completed", f"Step {step} completed")

        return ListingStepResult(
            session_id=session_id,
            step=step,
            status=ListingStatus(updated.get("status", ListingStatus.ACTIVE.value)),
            output=response.content,
            provider=response.provider.value,
            model=response.model,
            credits_charged=debit.charged,
            cost_usd=response.cost,
        )

    @staticmethod
    def _fail_step(session_id: str, step: int, previous_step: int, error: str) -> None:
        logger.error(f"Listing session {session_id}: step {step} failed: {error}")
        ListingSessionService.restore_active(session_id, previous_step)
        publish_listing_progress(session_id, step, "error", error)

    def run_remaining(
        self,
        session_id: UUID | str,
        user: AuthUser,
        on_step: Callable[[int, ListingStepResult], None] | None = None,
    ) -> list[ListingStepResult]:
        """
        Run the steps in order, starting at the first step without output.

        Stops at the first failure (the exception propagates).

        Args:
            on_step: Optional callback invoked after each finished step
        """
        session = ListingSessionService.get_session(session_id, user.id)
        start = self.next_step(session)

        results: list[ListingStepResult] = []
        for step in range(start, FINAL_STEP + 1):
            result = self.run_step(session_id, user, step)
            results.append(result)
            if on_step:
                on_step(step, result)
        return results

    @staticmethod
    def next_step(session: dict) -> int:
        """First step that hasn't produced output yet (FINAL_STEP + 1 when done)."""
        for step, definition in sorted(LISTING_STEPS.items()):
            if not session.get(definition.output):
                return step
        return FINAL_STEP + 1
