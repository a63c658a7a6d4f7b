# =============================================================================
# core/services/dashboard_service.py - Dashboard Aggregates
# =============================================================================
# Numbers for the two dashboards:
# - admin: platform-wide row counts and AI spend
# - user: credit balance, recent transactions, this month's AI usage and
#   a few recommendations
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.config import settings
from core.services.credit_service import CreditService
from core.services.generation_log_service import LOGS_TABLE, GenerationLogService
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# table -> filters counted on the admin dashboard
ADMIN_COUNTS: dict[str, dict[str, Any]] = {
    "users": {"is_active": True},
    "suppliers": {"is_active": True},
    "products": {"is_active": True},
    "partners": {"is_active": True},
    "tools": {"is_active": True},
    "templates": {"is_active": True},
    "prompts": {"is_active": True},
    "amazon_listing_sessions": {},
}


def _start_of_month(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class DashboardService:

    @staticmethod
    def admin_stats() -> dict[str, Any]:
        counts = {
            table: SupabaseClient.count_rows(table, filters)
            for table, filters in ADMIN_COUNTS.items()
        }

        logs = SupabaseClient.fetch_all(LOGS_TABLE, columns="id, cost_usd, total_tokens")
        total_cost = sum(float(row.get("cost_usd") or 0) for row in logs)
        total_tokens = sum(int(row.get("total_tokens") or 0) for row in logs)

        return {
            "counts": counts,
            "ai_usage": {
                "total_generations": len(logs),
                "total_tokens": total_tokens,
                "total_cost_usd": round(total_cost, 4),
            },
        }

    @staticmethod
    def user_summary(user_id: UUID | str) -> dict[str, Any]:
        balance = CreditService.get_balance(user_id)
        transactions = CreditService.list_transactions(user_id, limit=20)

        month_logs = GenerationLogService.list_for_user(user_id, since=_start_of_month())
        usage = {
            "generations": len(month_logs),
            "total_tokens": sum(int(row.get("total_tokens") or 0) for row in month_logs),
            "credits_used": sum(int(row.get("credits_used") or 0) for row in month_logs),
            "cost_usd": round(sum(float(row.get("cost_usd") or 0) for row in month_logs), 4),
        }

        return {
            "balance": balance.model_dump(mode="json"),
            "recent_transactions": [t.model_dump(mode="json") for t in transactions],
            "month_usage": usage,
            "recommendations": DashboardService.recommendations(
                balance.current_balance,
                has_generations=GenerationLogService.has_generations(user_id),
            ),
        }

    @staticmethod
    def recommendations(current_balance: int, has_generations: bool) -> list[dict[str, str]]:
        items = []
        if current_balance < settings.LOW_CREDIT_THRESHOLD:
            items.append({
                "type": "low_credits",
                "title": "Low credit balance",
                "message": f"You have {current_balance} credits left. Top up to keep using the AI agents.",
            })
        if not has_generations:
            items.append({
                "type": "try_agents",
                "title": "Try the Amazon Listing Optimizer",
                "message": "Generate titles, bullet points and a description from competitor reviews.",
            })
        return items
