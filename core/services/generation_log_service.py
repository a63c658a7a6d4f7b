# =============================================================================
# core/services/generation_log_service.py - AI Usage Logging
# =============================================================================
# Every AI or image call made on behalf of a user is recorded in
# ai_generation_logs (tokens, cost, duration, credits). The logs feed the
# dashboards. Failing to write a log never fails the user's request.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

LOGS_TABLE = "ai_generation_logs"

# Prompts/responses are truncated so one huge review dump doesn't bloat the table
MAX_LOGGED_TEXT = 10_000


class GenerationLogService:

    @staticmethod
    def record(
        user_id: UUID | str,
        provider: str,
        model: str,
        feature: str,
        prompt: str | None = None,
        response: str | None = None,
        input_tokens: int = 0,
        output_tokens: int = 0,
        cost_usd: float = 0.0,
        duration_ms: int = 0,
        credits_used: int = 0,
    ) -> dict[str, Any] | None:
        """
        Insert one ai_generation_logs row.

        Returns:
            The inserted row, or None if the insert failed
        """
        try:
            return SupabaseClient.insert_row(LOGS_TABLE, {
                "user_id": normalize_uuid(user_id),
                "provider": provider,
                "model": model,
                "feature": feature,
                "prompt": (prompt or "")[:MAX_LOGGED_TEXT],
                "response": (response or "")[:MAX_LOGGED_TEXT],
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "total_tokens": input_tokens + output_tokens,
                "cost_usd": round(cost_usd, 6),
                "duration_ms": duration_ms,
                "credits_used": credits_used,
            })
        except SupabaseClientError as e:
            logger.warning(f"Could not record generation log for {feature}: {e}")
            return None

    @staticmethod
    def list_for_user(
        user_id: UUID | str,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Logs newest first, optionally only those created at or after `since`."""
        columns = "id, provider, model, feature, total_tokens, cost_usd, credits_used, created_at"
        filters = {"user_id": user_id}
        gte = {"created_at": since.astimezone(timezone.utc).isoformat()} if since else None

        if limit is None:
            return SupabaseClient.fetch_all(LOGS_TABLE, filters=filters, columns=columns, gte=gte)

        rows, _ = SupabaseClient.fetch_many(
            LOGS_TABLE,
            filters=filters,
            columns=columns,
            order_by="created_at",
            desc=True,
            limit=limit,
            gte=gte,
        )
        return rows

    @staticmethod
    def has_generations(user_id: UUID | str) -> bool:
        return SupabaseClient.count_rows(LOGS_TABLE, {"user_id": user_id}) > 0

