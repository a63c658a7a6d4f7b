# =============================================================================
# core/services/credit_service.py - Credit Ledger
# =============================================================================
# Meters feature usage against a per-user credit balance.
#
# A debit is: read balance -> compare with the feature's cost -> one UPDATE
# of user_credit_balance -> one credit_transactions audit row. Callers check
# access before running a feature and debit only after it succeeded, so a
# failed feature never costs anything.
#
# Administrators are never charged.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import FeatureCostNotFoundError, InsufficientCreditsError, InvalidPayloadError
from core.models.credit import (
    AccessCheck,
    CreditBalance,
    CreditTransaction,
    DebitResult,
    FeatureCost,
    TransactionType,
)
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)

BALANCE_TABLE = "user_credit_balance"
TRANSACTIONS_TABLE = "credit_transactions"
FEATURE_COSTS_TABLE = "feature_costs"


class CreditService:
    """
    Service for credit balance and feature-cost operations.

    Example:
        check = CreditService.check_access(user, "tools.amazon_reviews")
        if check.has_access:
            result = run_feature()
            CreditService.debit(user, "tools.amazon_reviews", "Reviews for B0ABC12345")
    """

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def get_balance(user_id: UUID | str) -> CreditBalance:
        """
        Get a user's balance. Users without a balance row have zero credits.
        """
        row = SupabaseClient.fetch_one(BALANCE_TABLE, {"user_id": user_id})
        if not row:
            return CreditBalance(user_id=user_id)
        return CreditBalance(
            user_id=row["user_id"],
            current_balance=row.get("current_balance") or 0,
            total_earned=row.get("total_earned") or 0,
            total_spent=row.get("total_spent") or 0,
        )

    @staticmethod
    def get_feature_cost(feature_key: str) -> FeatureCost:
        """
        Raises:
            FeatureCostNotFoundError: If the feature is unknown or disabled
        """
        row = SupabaseClient.fetch_one(
            FEATURE_COSTS_TABLE,
            {"feature_key": feature_key, "is_active": True},
        )
        if not row:
            raise FeatureCostNotFoundError(feature_key)
        return FeatureCost(**row)

    @staticmethod
    def list_feature_costs(category: str | None = None) -> list[FeatureCost]:
        filters: dict[str, Any] = {"is_active": True}
        if category:
            filters["category"] = category
        rows, _ = SupabaseClient.fetch_many(
            FEATURE_COSTS_TABLE, filters=filters, order_by="feature_key", desc=False
        )
        return [FeatureCost(**row) for row in rows]

    @staticmethod
    def list_transactions(user_id: UUID | str, limit: int = 20) -> list[CreditTransaction]:
        """Most recent transactions first."""
        rows, _ = SupabaseClient.fetch_many(
            TRANSACTIONS_TABLE,
            filters={"user_id": user_id},
            order_by="created_at",
            desc=True,
            limit=limit,
        )
        return [CreditTransaction(**row) for row in rows]

    # -------------------------------------------------------------------------
    # Access checks
    # -------------------------------------------------------------------------

    @staticmethod
    def check_access(user: AuthUser, feature_key: str) -> AccessCheck:
        """
        Report whether the user can afford a feature.

        Raises:
            FeatureCostNotFoundError: If the feature is not configured
        """
        feature = CreditService.get_feature_cost(feature_key)
        balance = CreditService.get_balance(user.id)

        if user.is_admin:
            return AccessCheck(
                feature_key=feature_key,
                has_access=True,
                cost=0,
                balance=balance.current_balance,
                is_free=True,
            )

        return AccessCheck(
            feature_key=feature_key,
            has_access=balance.current_balance >= feature.credit_cost,
            cost=feature.credit_cost,
            balance=balance.current_balance,
        )

    @staticmethod
    def require_access(user: AuthUser, feature_key: str) -> AccessCheck:
        """
        Same as check_access but raises when the balance is too low.

        Raises:
            InsufficientCreditsError: 402 when balance < cost
        """
        check = CreditService.check_access(user, feature_key)
        if not check.has_access:
            raise InsufficientCreditsError(feature_key, check.cost, check.balance)
        return check

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @staticmethod
    def debit(
        user: AuthUser,
        feature_key: str,
        description: str | None = None,
        reference_id: str | None = None,
    ) -> DebitResult:
        """
        Charge a feature's cost to the user.

        The balance is left untouched when it cannot cover the cost.

        Raises:
            FeatureCostNotFoundError: If the feature is not configured
            InsufficientCreditsError: If balance < cost
        """
        feature = CreditService.get_feature_cost(feature_key)
        balance = CreditService.get_balance(user.id)

        if user.is_admin:
            logger.info(f"Admin {user.id} used {feature_key} free of charge")
            return DebitResult(
                feature_key=feature_key,
                charged=0,
                balance_after=balance.current_balance,
            )

        cost = feature.credit_cost
        if balance.current_balance < cost:
            raise InsufficientCreditsError(feature_key, cost, balance.current_balance)

        new_balance = balance.current_balance - cost
        SupabaseClient.update_rows(
            BALANCE_TABLE,
            {
                "current_balance": new_balance,
                "total_spent": balance.total_spent + cost,
                "updated_at": utc_now_iso(),
            },
            {"user_id": user.id},
        )

        transaction = SupabaseClient.insert_row(TRANSACTIONS_TABLE, {
            "user_id": normalize_uuid(user.id),
            "type": TransactionType.DEBIT.value,
            "amount": cost,
            "description": description or f"Used {feature.feature_name}",
            "feature_key": feature_key,
            "reference_id": reference_id,
            "balance_after": new_balance,
        })

        logger.info(f"Debited {cost} credits from {user.id} for {feature_key} (balance {new_balance})")
        return DebitResult(
            feature_key=feature_key,
            charged=cost,
            balance_after=new_balance,
            transaction_id=transaction.get("id"),
        )

    @staticmethod
    def credit(
        user_id: UUID | str,
        amount: int,
        description: str,
        reference_id: str | None = None,
    ) -> CreditBalance:
        """
        Add credits to a user, creating the balance row on first grant.

        Raises:
            InvalidPayloadError: If amount is not positive
        """
        if amount <= 0:
            raise InvalidPayloadError("Credit amount must be positive", {"amount": amount})

        user_id_str = normalize_uuid(user_id)
        existing = SupabaseClient.fetch_one(BALANCE_TABLE, {"user_id": user_id_str})

        if existing:
            new_balance = (existing.get("current_balance") or 0) + amount
            total_earned = (existing.get("total_earned") or 0) + amount
            total_spent = existing.get("total_spent") or 0
            SupabaseClient.update_rows(
                BALANCE_TABLE,
                {
                    "current_balance": new_balance,
                    "total_earned": total_earned,
                    "updated_at": utc_now_iso(),
                },
                {"user_id": user_id_str},
            )
        else:
            new_balance = total_earned = amount
            total_spent = 0
            SupabaseClient.insert_row(BALANCE_TABLE, {
                "user_id": user_id_str,
                "current_balance": new_balance,
                "total_earned": total_earned,
                "total_spent": 0,
            })

        SupabaseClient.insert_row(TRANSACTIONS_TABLE, {
            "user_id": user_id_str,
            "type": TransactionType.CREDIT.value,
            "amount": amount,
            "description": description,
            "reference_id": reference_id,
            "balance_after": new_balance,
        })

        logger.info(f"Credited {amount} credits to {user_id_str} (balance {new_balance})")
        return CreditBalance(
            user_id=user_id_str,
            current_balance=new_balance,
            total_earned=total_earned,
            total_spent=total_spent,
        )
