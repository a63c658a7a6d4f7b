# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - FakeSupabase: in-memory tables behind the SupabaseClient helper methods
# - Regular user / second user / admin identities
# - Feature prices and starting balances
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-123")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "false")

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

import pytest

from app.auth.models import AuthUser, UserRole
from lib.supabase_client import SupabaseClient


# =============================================================================
# In-memory Supabase
# =============================================================================

def _norm(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value


class FakeSupabase:
    """
    Stand-in for the SupabaseClient helpers with the same filter semantics:
    scalar -> equality, list -> membership, None -> is null.
    """

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> str:
        # Strictly increasing so "newest first" ordering is deterministic
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    @staticmethod
    def _matches(row: dict[str, Any], filters: dict[str, Any] | None) -> bool:
        for column, value in (filters or {}).items():
            actual = _norm(row.get(column))
            if value is None:
                if actual is not None:
                    return False
            elif isinstance(value, (list, tuple, set)):
                if actual not in {_norm(v) for v in value}:
                    return False
            elif actual != _norm(value):
                return False
        return True

    @staticmethod
    def _at_least(row: dict[str, Any], gte: dict[str, Any] | None) -> bool:
        # ISO timestamps in UTC compare correctly as strings
        return all(str(row.get(column) or "") >= str(_norm(value)) for column, value in (gte or {}).items())

    def seed(self, table: str, *rows: dict[str, Any]) -> list[dict[str, Any]]:
        return [self.insert_row(table, row) for row in rows]

    def rows(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        return [dict(r) for r in self.tables[table] if self._matches(r, filters)]

    # -------------------------------------------------------------------------
    # SupabaseClient helper signatures
    # -------------------------------------------------------------------------

    def fetch_one(self, table: str, filters: dict[str, Any], columns: str = "*") -> dict[str, Any] | None:
        for row in self.tables[table]:
            if self._matches(row, filters):
                return dict(row)
        return None

    def fetch_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str = "created_at",
        desc: bool = True,
        limit: int | None = None,
        offset: int = 0,
        search: str | None = None,
        search_columns: list[str] | None = None,
        gte: dict[str, Any] | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        rows = [r for r in self.tables[table] if self._matches(r, filters) and self._at_least(r, gte)]

        if search and search_columns:
            term = search.lower()
            rows = [
                r for r in rows
                if any(term in str(r.get(col) or "").lower() for col in search_columns)
            ]

        rows.sort(key=lambda r: str(r.get(order_by) or ""), reverse=desc)
        total = len(rows)
        if limit is not None:
            rows = rows[offset:offset + limit]
        return [dict(r) for r in rows], total

    def count_rows(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        gte: dict[str, Any] | None = None,
    ) -> int:
        return sum(1 for r in self.tables[table] if self._matches(r, filters) and self._at_least(r, gte))

    def insert_row(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        row = {k: _norm(v) for k, v in data.items()}
        row.setdefault("id", str(uuid4()))
        row.setdefault("created_at", self._now())
        self.tables[table].append(row)
        return dict(row)

    def update_rows(self, table: str, data: dict[str, Any], filters: dict[str, Any]) -> list[dict[str, Any]]:
        assert filters, "unfiltered update"
        updated = []
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update({k: _norm(v) for k, v in data.items()})
                updated.append(dict(row))
        return updated


@pytest.fixture
def fake_db(monkeypatch) -> FakeSupabase:
    """Route every SupabaseClient helper to a fresh in-memory store."""
    fake = FakeSupabase()
    for name in ("fetch_one", "fetch_many", "count_rows", "insert_row", "update_rows"):
        monkeypatch.setattr(SupabaseClient, name, staticmethod(getattr(fake, name)))
    return fake


# =============================================================================
# Identities
# =============================================================================

@pytest.fixture
def user() -> AuthUser:
    return AuthUser(id=uuid4(), email="seller@example.com", role=UserRole.USER)


@pytest.fixture
def other_user() -> AuthUser:
    return AuthUser(id=uuid4(), email="other@example.com", role=UserRole.USER)


@pytest.fixture
def admin() -> AuthUser:
    return AuthUser(id=uuid4(), email="admin@example.com", role=UserRole.ADMIN)


# =============================================================================
# Credits
# =============================================================================

FEATURE_PRICES = {
    "agents.amazon_listing_optimizer": ("Amazon Listing Optimizer", "agents", 10),
    "tools.amazon_reviews": ("Amazon Reviews", "tools", 5),
    "tools.product_details": ("Product Details", "tools", 3),
    "tools.keyword_search": ("Keyword Search", "tools", 3),
    "tools.image_upscale": ("Image Upscale", "tools", 4),
    "tools.background_removal": ("Background Removal", "tools", 4),
}


@pytest.fixture
def feature_costs(fake_db) -> dict[str, int]:
    """Seed feature_costs; returns feature_key -> credit cost."""
    for key, (name, category, cost) in FEATURE_PRICES.items():
        fake_db.seed("feature_costs", {
            "feature_key": key,
            "feature_name": name,
            "category": category,
            "credit_cost": cost,
            "is_active": True,
        })
    return {key: cost for key, (_, _, cost) in FEATURE_PRICES.items()}


@pytest.fixture
def give_credits(fake_db):
    """Factory fixture: give_credits(user, 100) creates the balance row."""
    def _give(who: AuthUser, amount: int) -> None:
        fake_db.seed("user_credit_balance", {
            "user_id": str(who.id),
            "current_balance": amount,
            "total_earned": amount,
            "total_spent": 0,
        })
    return _give


# =============================================================================
# Listing sessions
# =============================================================================

@pytest.fixture
def product_data() -> dict[str, str]:
    return {
        "product_name": "Garrafa Térmica Inox 1L",
        "brand": "Acme",
        "category": "Casa e Cozinha",
        "keywords": "garrafa térmica, garrafa inox",
        "long_tail_keywords": "garrafa térmica para café 1 litro",
        "main_features": "Parede dupla, mantém 12h quente",
        "target_audience": "Quem leva café para o trabalho",
        "reviews_data": "[5 stars] Excelente\nMantém o café quente o dia todo.\n\n[2 stars] Tampa vaza\nA tampa vaza quando deitada.",
    }
