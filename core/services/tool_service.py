# =============================================================================
# core/services/tool_service.py - Credit-Metered Tool Calls
# =============================================================================
# The enrichment (RapidAPI) and image (PixelCut) tools all follow the same
# sequence:
#   1. check the caller can afford the feature (402 otherwise)
#   2. call the vendor
#   3. debit credits and write a generation log
#
# Nothing is charged when the vendor call fails.
# =============================================================================

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from app.auth.models import AuthUser
from app.exceptions import ExternalServiceError
from core.models.credit import DebitResult
from core.services.credit_service import CreditService
from core.services.generation_log_service import GenerationLogService
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass
class MeteredResult(Generic[R]):
    result: R
    debit: DebitResult
    duration_ms: int


class ToolService:

    @staticmethod
    def run_metered(
        user: AuthUser,
        feature_key: str,
        provider: str,
        call: Callable[[], R],
        request_summary: str,
        reference_id: str | None = None,
    ) -> MeteredResult[R]:
        """
        Run one vendor call under the credit ledger.

        Args:
            user: Caller (admins are not charged)
            feature_key: feature_costs key, e.g. tools.amazon_reviews
            provider: Vendor name written to the generation log
            call: Zero-argument function performing the vendor request
            request_summary: Short description of the request, logged as the prompt
            reference_id: Optional id stored on the credit transaction

        Raises:
            InsufficientCreditsError: Balance below the feature cost
            ExternalServiceError: The vendor call failed
        """
        CreditService.require_access(user, feature_key)

        started = time.monotonic()
        try:
            result = call()
        except ApplicationError as e:
            logger.warning(f"{provider} call for {feature_key} failed: [{e.code}] {e.message}")
            raise ExternalServiceError(provider, e.message, code=e.code, suggestion=e.suggestion)
        duration_ms = int((time.monotonic() - started) * 1000)

        debit = CreditService.debit(
            user,
            feature_key,
            description=request_summary,
            reference_id=reference_id,
        )
        GenerationLogService.record(
            user_id=user.id,
            provider=provider,
            model=feature_key.split(".", 1)[-1],
            feature=feature_key,
            prompt=request_summary,
            response=_summarize(result),
            duration_ms=duration_ms,
            credits_used=debit.charged,
        )

        return MeteredResult(result=result, debit=debit, duration_ms=duration_ms)


def _summarize(result: Any) -> str:
    if isinstance(result, str):
        # data: URLs are huge and useless in the log
        return result[:200] if result.startswith("data:") else result
    if isinstance(result, list):
        return f"{len(result)} item(s)"
    if isinstance(result, dict):
        return f"keys: {', '.join(sorted(result))[:500]}"
    return str(result)
