# =============================================================================
# tests/test_listing_pipeline.py - Amazon Listing Optimizer Tests
# =============================================================================
# This module contains tests for:
# - Session lifecycle (create, product data validation, abort, download)
# - Step ordering and the credit check before the LLM call
# - Output storage, debit and generation log after a successful step
# - Status restore and no charge after a failed step
# - Running the remaining steps in order
#
# The provider service is a MagicMock; websocket events are captured.
# =============================================================================

from unittest.mock import MagicMock

import pytest

from agents.listing_optimizer import FEATURE_KEY, ListingOptimizerAgent
from agents.prompts.listing_prompts import build_step_prompt
from agents.providers import AIProviderError, AIResponse, TokenUsage
from app.exceptions import (
    InsufficientCreditsError,
    InvalidPayloadError,
    ListingNotReadyError,
    ListingSessionAbortedError,
    ListingSessionNotFoundError,
    ListingStepOrderError,
    MissingProductDataError,
)
from core.models.agent import ProviderName
from core.models.listing import ListingProductData, ListingStatus
from core.services.agent_service import AgentService
from core.services.credit_service import CreditService
from core.services.listing_session_service import ListingSessionService
from lib.supabase_client import SupabaseClientError


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def events(monkeypatch) -> list[tuple]:
    """Capture listing_progress events instead of publishing to Redis."""
    captured = []

    def _publish(session_id, step, status, message):
        captured.append((step, status))
        return True

    monkeypatch.setattr("agents.listing_optimizer.publish_listing_progress", _publish)
    return captured


@pytest.fixture
def provider():
    """Provider service whose completions echo the step number."""
    service = MagicMock()
    calls = {"n": 0}

    def _complete(request):
        calls["n"] += 1
        return AIResponse(
            content=f"output {calls['n']}",
            usage=TokenUsage(input_tokens=1000, output_tokens=500),
            cost=0.00045,
            provider=request.provider,
            model=request.model,
            duration_ms=12,
        )

    service.generate_completion.side_effect = _complete
    return service


@pytest.fixture
def ready_session(fake_db, user, product_data):
    """Session with every required product field saved."""
    session = ListingSessionService.create_session(user.id)
    return ListingSessionService.update_product_data(
        session["id"], user.id, ListingProductData(**product_data)
    )


@pytest.fixture
def funded(feature_costs, user, give_credits):
    give_credits(user, 100)


# =============================================================================
# Session Lifecycle
# =============================================================================

class TestSessionLifecycle:
    """Tests for ListingSessionService."""

    def test_create_session_defaults(self, fake_db, user):
        session = ListingSessionService.create_session(user.id)

        assert session["status"] == ListingStatus.ACTIVE.value
        assert session["current_step"] == 0
        assert len(session["session_hash"]) == 16

    def test_other_user_cannot_read_session(self, fake_db, user, other_user):
        session = ListingSessionService.create_session(user.id)

        with pytest.raises(ListingSessionNotFoundError):
            ListingSessionService.get_session(session["id"], other_user.id)

    def test_missing_product_fields_are_listed(self, fake_db, user):
        session = ListingSessionService.create_session(user.id)

        with pytest.raises(MissingProductDataError) as exc_info:
            ListingSessionService.update_product_data(
                session["id"], user.id, ListingProductData(product_name="Mug", brand="  ")
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.details["missing_fields"] == ["brand", "category", "keywords", "reviews_data"]

    def test_aborted_session_rejects_data(self, fake_db, user, product_data):
        session = ListingSessionService.create_session(user.id)
        ListingSessionService.abort_session(session["id"], user.id)

        with pytest.raises(ListingSessionAbortedError):
            ListingSessionService.update_product_data(
                session["id"], user.id, ListingProductData(**product_data)
            )

    def test_download_requires_insight_and_titles(self, ready_session):
        with pytest.raises(ListingNotReadyError):
            ListingSessionService.build_download_text(ready_session)

    def test_download_text(self, ready_session):
        session = {**ready_session, "reviews_insight": "INSIGHT", "titles": "TITLE A"}

        text = ListingSessionService.build_download_text(session)

        assert text.startswith("AMAZON LISTING OPTIMIZER - RESULTS")
        assert f"SESSION: {session['session_hash']}" in text
        assert "- Brand: Acme" in text
        assert "INSIGHT" in text and "TITLE A" in text
        assert "Bullet points not generated" in text
        assert "Description not generated" in text
        assert ListingSessionService.download_filename(session) == f"amazon-listing-{session['session_hash']}.txt"


# =============================================================================
# Prompts
# =============================================================================

class TestPrompts:
    """Tests for build_step_prompt and prompt overrides."""

    def test_fields_are_substituted(self, product_data):
        prompt = build_step_prompt(2, {**product_data, "reviews_insight": "Customers love the lid"})

        assert "Garrafa Térmica Inox 1L" in prompt
        assert "Customers love the lid" in prompt
        assert "$" not in prompt

    def test_empty_fields_become_na(self):
        prompt = build_step_prompt(2, {"reviews_insight": "great"})

        assert "Product name: N/A" in prompt

    def test_override_template(self, product_data):
        prompt = build_step_prompt(3, product_data, template="Bullets for $brand, keep $unknown")

        assert prompt == "Bullets for Acme, keep $unknown"

    def test_resolve_prompt_falls_back_to_default(self, fake_db):
        assert AgentService.resolve_prompt("agent-amazon-listings", "titles", default="Built-in") == "Built-in"
        assert AgentService.resolve_prompt("agent-amazon-listings", "titles") is None

    def test_resolve_prompt_prefers_active_override(self, fake_db):
        fake_db.seed(
            "agent_prompts",
            {"agent_id": "agent-amazon-listings", "prompt_type": "titles", "content": "Old", "is_active": False},
            {"agent_id": "agent-amazon-listings", "prompt_type": "titles", "content": "Custom", "is_active": True},
        )

        assert AgentService.resolve_prompt("agent-amazon-listings", "titles", default="Built-in") == "Custom"


# =============================================================================
# Step Execution
# =============================================================================

class TestRunStep:
    """Tests for ListingOptimizerAgent.run_step."""

    def test_step_one_success(self, fake_db, user, ready_session, funded, provider, events):
        # Act
        result = ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 1)

        # Assert: result
        assert result.step == 1
        assert result.output == "output 1"
        assert result.status == ListingStatus.ACTIVE
        assert result.credits_charged == 10

        # Assert: session row
        session = ListingSessionService.get_session(ready_session["id"], user.id)
        assert session["reviews_insight"] == "output 1"
        assert session["current_step"] == 1
        assert session["status"] == ListingStatus.ACTIVE.value
        assert session["provider"] == "openai"

        # Assert: credits, log, events
        assert CreditService.get_balance(user.id).current_balance == 90
        logs = fake_db.rows("ai_generation_logs")
        assert len(logs) == 1
        assert logs[0]["feature"] == "amazon_listing.reviews_analysis"
        assert logs[0]["total_tokens"] == 1500
        assert logs[0]["credits_used"] == 10
        assert events == [(1, "processing"), (1, "completed")]

    def test_prompt_uses_agent_configuration(self, fake_db, user, ready_session, funded, provider, events):
        fake_db.seed("agents", {
            "id": "agent-amazon-listings",
            "name": "Amazon Listing Optimizer",
            "provider": "anthropic",
            "model": "claude-3-haiku-20240307",
            "temperature": 0.3,
            "max_tokens": 3000,
        })

        ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 1)

        request = provider.generate_completion.call_args.args[0]
        assert request.provider == ProviderName.ANTHROPIC
        assert request.model == "claude-3-haiku-20240307"
        assert request.temperature == 0.3
        assert request.max_tokens == 3000
        assert request.messages[0].role == "system"
        assert "Mantém o café quente" in request.messages[1].content

    def test_prompt_override_is_used(self, fake_db, user, ready_session, funded, provider, events):
        fake_db.seed("agent_prompts", {
            "agent_id": "agent-amazon-listings",
            "prompt_type": "reviews_analysis",
            "content": "Summarise: $reviews_data",
            "is_active": True,
        })

        ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 1)

        request = provider.generate_completion.call_args.args[0]
        assert request.messages[1].content.startswith("Summarise: [5 stars]")

    def test_steps_must_run_in_order(self, fake_db, user, ready_session, funded, provider, events):
        with pytest.raises(ListingStepOrderError) as exc_info:
            ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 2)

        assert exc_info.value.details["missing_field"] == "reviews_insight"
        provider.generate_completion.assert_not_called()

    def test_invalid_step(self, fake_db, user, ready_session, provider):
        with pytest.raises(InvalidPayloadError):
            ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 5)

    def test_aborted_session(self, fake_db, user, ready_session, funded, provider, events):
        ListingSessionService.abort_session(ready_session["id"], user.id)

        with pytest.raises(ListingSessionAbortedError):
            ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 1)

    def test_insufficient_credits_stops_before_llm(
        self, fake_db, user, ready_session, feature_costs, give_credits, provider, events
    ):
        give_credits(user, 9)

        with pytest.raises(InsufficientCreditsError):
            ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 1)

        provider.generate_completion.assert_not_called()
        session = ListingSessionService.get_session(ready_session["id"], user.id)
        assert session["status"] == ListingStatus.ACTIVE.value
        assert session.get("reviews_insight") is None
        assert CreditService.get_balance(user.id).current_balance == 9
        assert events == []

    def test_llm_failure_restores_status_and_charges_nothing(
        self, fake_db, user, ready_session, funded, provider, events
    ):
        provider.generate_completion.side_effect = AIProviderError("openai", "gpt-4o-mini", "timeout")

        with pytest.raises(AIProviderError):
            ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 1)

        session = ListingSessionService.get_session(ready_session["id"], user.id)
        assert session["status"] == ListingStatus.ACTIVE.value
        assert session["current_step"] == 0
        assert CreditService.get_balance(user.id).current_balance == 100
        assert fake_db.rows("credit_transactions") == []
        assert fake_db.rows("ai_generation_logs") == []
        assert events == [(1, "processing"), (1, "error")]

    def test_failed_rerun_keeps_current_step(self, fake_db, user, ready_session, funded, provider, events):
        """Re-running an early step and failing leaves later progress alone."""
        # Arrange: run all four steps, then break the provider
        agent = ListingOptimizerAgent(provider_service=provider)
        agent.run_remaining(ready_session["id"], user)
        provider.generate_completion.side_effect = AIProviderError("openai", "gpt-4o-mini", "timeout")

        # Act
        with pytest.raises(AIProviderError):
            agent.run_step(ready_session["id"], user, 1)

        # Assert
        session = ListingSessionService.get_session(ready_session["id"], user.id)
        assert session["status"] == ListingStatus.ACTIVE.value
        assert session["current_step"] == 4
        assert session["description"] == "output 4"

    def test_failed_debit_stores_nothing(self, fake_db, user, ready_session, funded, provider, events, monkeypatch):
        """A balance that drops between the check and the charge leaves no output behind."""
        # Arrange
        def _debit(*args, **kwargs):
            raise InsufficientCreditsError(FEATURE_KEY, 10, 0)

        monkeypatch.setattr(CreditService, "debit", staticmethod(_debit))

        # Act
        with pytest.raises(InsufficientCreditsError):
            ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 1)

        # Assert
        session = ListingSessionService.get_session(ready_session["id"], user.id)
        assert session["status"] == ListingStatus.ACTIVE.value
        assert session["current_step"] == 0
        assert session.get("reviews_insight") is None
        assert fake_db.rows("ai_generation_logs") == []
        assert events == [(1, "processing"), (1, "error")]

    def test_failed_save_refunds_the_charge(self, fake_db, user, ready_session, funded, provider, events, monkeypatch):
        # Arrange
        def _save(*args, **kwargs):
            raise SupabaseClientError("connection reset")

        monkeypatch.setattr(ListingSessionService, "save_step_output", staticmethod(_save))

        # Act
        with pytest.raises(SupabaseClientError):
            ListingOptimizerAgent(provider_service=provider).run_step(ready_session["id"], user, 1)

        # Assert
        session = ListingSessionService.get_session(ready_session["id"], user.id)
        assert session["status"] == ListingStatus.ACTIVE.value
        assert CreditService.get_balance(user.id).current_balance == 100
        assert [t["type"] for t in fake_db.rows("credit_transactions", reference_id=ready_session["id"])] == [
            "debit", "credit",
        ]

    def test_admin_runs_for_free(self, fake_db, admin, feature_costs, product_data, provider, events):
        session = ListingSessionService.create_session(admin.id, ListingProductData(**product_data))

        result = ListingOptimizerAgent(provider_service=provider).run_step(session["id"], admin, 1)

        assert result.credits_charged == 0
        assert fake_db.rows("ai_generation_logs")[0]["credits_used"] == 0


# =============================================================================
# Remaining Steps
# =============================================================================

class TestRunRemaining:
    """Tests for run_remaining / next_step."""

    def test_runs_all_four_steps(self, fake_db, user, ready_session, funded, provider, events):
        finished = []

        results = ListingOptimizerAgent(provider_service=provider).run_remaining(
            ready_session["id"], user, on_step=lambda step, result: finished.append(step)
        )

        assert [r.step for r in results] == [1, 2, 3, 4]
        assert finished == [1, 2, 3, 4]
        assert results[-1].status == ListingStatus.COMPLETED

        session = ListingSessionService.get_session(ready_session["id"], user.id)
        assert session["status"] == ListingStatus.COMPLETED.value
        assert session["current_step"] == 4
        assert session["description"] == "output 4"
        assert CreditService.get_balance(user.id).current_balance == 100 - 4 * 10
        assert len(fake_db.rows("credit_transactions", feature_key=FEATURE_KEY)) == 4

    def test_resumes_after_last_output(self, fake_db, user, ready_session, funded, provider, events):
        agent = ListingOptimizerAgent(provider_service=provider)
        agent.run_step(ready_session["id"], user, 1)
        agent.run_step(ready_session["id"], user, 2)

        results = agent.run_remaining(ready_session["id"], user)

        assert [r.step for r in results] == [3, 4]

    def test_stops_at_first_failure(self, fake_db, user, ready_session, funded, provider, events):
        ok = provider.generate_completion.side_effect

        def _fail_on_third(request):
            if provider.generate_completion.call_count == 3:
                raise AIProviderError("openai", request.model, "boom")
            return ok(request)

        provider.generate_completion.side_effect = _fail_on_third

        with pytest.raises(AIProviderError):
            ListingOptimizerAgent(provider_service=provider).run_remaining(ready_session["id"], user)

        session = ListingSessionService.get_session(ready_session["id"], user.id)
        assert session["titles"] is not None
        assert session.get("bullet_points") is None
        assert session["current_step"] == 2
        assert CreditService.get_balance(user.id).current_balance == 80

    @pytest.mark.parametrize("outputs,expected", [
        ({}, 1),
        ({"reviews_insight": "x"}, 2),
        ({"reviews_insight": "x", "titles": "x", "bullet_points": "x"}, 4),
        ({"reviews_insight": "x", "titles": "x", "bullet_points": "x", "description": "x"}, 5),
    ])
    def test_next_step(self, outputs, expected):
        assert ListingOptimizerAgent.next_step(outputs) == expected
