# =============================================================================
# core/services/listing_session_service.py - Listing Session Persistence
# =============================================================================
# Reads and writes amazon_listing_sessions rows. Sessions are scoped to their
# owner: a session owned by someone else is reported as not found.
#
# The step orchestration (LLM calls, credits, events) lives in
# agents/listing_optimizer.py; this module only knows about rows and state.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import (
    ListingNotReadyError,
    ListingSessionAbortedError,
    ListingSessionNotFoundError,
    MissingProductDataError,
    TaskNotFoundError,
)
from core.models.listing import (
    FINAL_STEP,
    REQUIRED_PRODUCT_FIELDS,
    ListingProductData,
    ListingStatus,
)
from lib.supabase_client import SupabaseClient
from lib.utils import generate_session_hash, normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)

SESSIONS_TABLE = "amazon_listing_sessions"


class ListingSessionService:
    """Service for listing session rows."""

    @staticmethod
    def create_session(
        user_id: UUID | str,
        product: ListingProductData | None = None,
    ) -> dict[str, Any]:
        """
        Create an empty session, optionally pre-filled with product data.

        Product data sent here is saved as-is; required fields are only
        enforced by update_product_data.
        """
        data: dict[str, Any] = {
            "user_id": normalize_uuid(user_id),
            "session_hash": generate_session_hash(),
            "status": ListingStatus.ACTIVE.value,
            "current_step": 0,
        }
        if product:
            data.update(product.model_dump(exclude_none=True))

        session = SupabaseClient.insert_row(SESSIONS_TABLE, data)
        logger.info(f"Created listing session {session['id']} for user {user_id}")
        return session

    @staticmethod
    def get_session(session_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Raises:
            ListingSessionNotFoundError: If missing or owned by another user
        """
        session = SupabaseClient.fetch_one(SESSIONS_TABLE, {"id": session_id})
        if not session or str(session.get("user_id")) != str(user_id):
            raise ListingSessionNotFoundError(str(session_id))
        return session

    @staticmethod
    def list_for_user(
        user_id: UUID | str,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[dict[str, Any]], int]:
        """Newest sessions first."""
        return SupabaseClient.fetch_many(
            SESSIONS_TABLE,
            filters={"user_id": user_id},
            order_by="created_at",
            desc=True,
            limit=page_size,
            offset=(page - 1) * page_size,
        )

    @staticmethod
    def update_product_data(
        session_id: UUID | str,
        user_id: UUID | str,
        product: ListingProductData,
    ) -> dict[str, Any]:
        """
        Save the product data the steps run on.

        Raises:
            ListingSessionNotFoundError: If missing or owned by another user
            ListingSessionAbortedError: If the session was aborted
            MissingProductDataError: If a required field is empty
        """
        session = ListingSessionService.get_session(session_id, user_id)
        if session.get("status") == ListingStatus.ABORTED.value:
            raise ListingSessionAbortedError(str(session_id))

        values = product.model_dump()
        missing = [field for field in REQUIRED_PRODUCT_FIELDS if not (values.get(field) or "").strip()]
        if missing:
            raise MissingProductDataError(missing)

        changes = {k: v for k, v in values.items() if v is not None}
        return ListingSessionService._update(session_id, changes, fallback=session)

    @staticmethod
    def mark_processing(session_id: UUID | str, step: int) -> dict[str, Any]:
        return ListingSessionService._update(session_id, {
            "status": ListingStatus.PROCESSING.value,
            "current_step": step,
        })

    @staticmethod
    def save_step_output(
        session_id: UUID | str,
        step: int,
        output_field: str,
        output: str,
        provider: str,
        model: str,
    ) -> dict[str, Any]:
        """Store a step's output and return the session to active (or completed)."""
        status = ListingStatus.COMPLETED if step == FINAL_STEP else ListingStatus.ACTIVE
        return ListingSessionService._update(session_id, {
            output_field: output,
            "current_step": step,
            "status": status.value,
            "provider": provider,
            "model": model,
        })

    @staticmethod
    def restore_active(session_id: UUID | str, previous_step: int) -> dict[str, Any]:
        """
        Put a session back to active after a failed step.

        previous_step is the current_step the session had before the step
        started, so re-running an early step on a finished session and
        failing leaves the counter where it was.
        """
        return ListingSessionService._update(session_id, {
            "status": ListingStatus.ACTIVE.value,
            "current_step": previous_step,
        })

    @staticmethod
    def attach_task(session_id: UUID | str, task_id: str) -> dict[str, Any]:
        """Remember the worker task running this session's remaining steps."""
        return ListingSessionService._update(session_id, {"task_id": task_id})

    @staticmethod
    def get_by_task(task_id: str, user_id: UUID | str) -> dict[str, Any]:
        """
        Session a background task was queued for.

        Raises:
            TaskNotFoundError: If no session of this user carries the task
        """
        session = SupabaseClient.fetch_one(SESSIONS_TABLE, {"task_id": task_id})
        if not session or str(session.get("user_id")) != str(user_id):
            raise TaskNotFoundError(task_id)
        return session

    @staticmethod
    def abort_session(session_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        session = ListingSessionService.get_session(session_id, user_id)
        updated = ListingSessionService._update(
            session_id, {"status": ListingStatus.ABORTED.value}, fallback=session
        )
        logger.info(f"Aborted listing session {session_id}")
        return updated

    @staticmethod
    def _update(
        session_id: UUID | str,
        changes: dict[str, Any],
        fallback: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        rows = SupabaseClient.update_rows(
            SESSIONS_TABLE,
            {**changes, "updated_at": utc_now_iso()},
            {"id": session_id},
        )
        if rows:
            return rows[0]
        if fallback is not None:
            return {**fallback, **changes}
        raise ListingSessionNotFoundError(str(session_id))

    # -------------------------------------------------------------------------
    # Download
    # -------------------------------------------------------------------------

    @staticmethod
    def download_filename(session: dict[str, Any]) -> str:
        return f"amazon-listing-{session['session_hash']}.txt"

    @staticmethod
    def build_download_text(session: dict[str, Any]) -> str:
        """
        Render the finished listing as a plain-text report.

        Raises:
            ListingNotReadyError: If the reviews analysis or titles are missing
        """
        if not session.get("reviews_insight") or not session.get("titles"):
            raise ListingNotReadyError(str(session.get("id")))

        def value(field: str, default: str = "N/A") -> str:
            return session.get(field) or default

        rule = "=" * 47
        sections = [
            "AMAZON LISTING OPTIMIZER - RESULTS",
            rule,
            "",
            f"SESSION: {session['session_hash']}",
            f"USER: {session['user_id']}",
            f"CREATED: {value('created_at')}",
            "",
            "PRODUCT DATA:",
            f"- Name: {value('product_name')}",
            f"- Brand: {value('brand')}",
            f"- Category: {value('category')}",
            f"- Keywords: {value('keywords')}",
            f"- Long Tail Keywords: {value('long_tail_keywords')}",
            f"- Features: {value('main_features')}",
            f"- Target Audience: {value('target_audience')}",
        ]

        for title, field, default in (
            ("REVIEWS ANALYSIS", "reviews_insight", ""),
            ("TITLES", "titles", ""),
            ("BULLET POINTS", "bullet_points", "Bullet points not generated"),
            ("DESCRIPTION", "description", "Description not generated"),
        ):
            sections += ["", rule, f"{title}:", rule, "", value(field, default)]

        sections += [
            "",
            rule,
            "Generated by Amazon Listing Optimizer",
            f"Powered by {value('provider', '-')} {value('model', '-')}",
            rule,
        ]
        return "\n".join(sections) + "\n"
