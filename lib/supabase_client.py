# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and exposes a small set of generic table helpers used by every service:
# - fetch_one / fetch_many for reads (with pagination and text search)
# - fetch_all to page through every matching row
# - insert_row / update_rows for writes
# - count_rows for dashboard statistics
#
# Services never build PostgREST queries themselves; going through these
# helpers keeps error translation in one place.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   supplier = SupabaseClient.fetch_one("suppliers", {"id": supplier_id})
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

# PostgREST code returned by .single() when no row matches
NO_ROWS_CODE = "PGRST116"

# PostgREST returns at most this many rows per request (db-max-rows)
FETCH_ALL_PAGE_SIZE = 1000


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries a code and a suggestion so callers can surface
    how to fix the problem, not only what failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def _clean_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return normalize_uuid(value)
    return value


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    One client instance is shared across the application. All methods are
    class methods for easy access without instantiation.

    Filters are plain dicts: a scalar value becomes `.eq(column, value)`,
    a list becomes `.in_(column, values)` and None becomes `is null`.

    Example:
        rows, total = SupabaseClient.fetch_many(
            "products",
            filters={"user_id": user_id, "is_active": True},
            search="mouse",
            search_columns=["name", "sku"],
            limit=20,
        )
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses the service_role key which bypasses Row Level Security, so
        tenant scoping is enforced by the services.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _apply_filters(
        cls,
        query: Any,
        filters: dict[str, Any] | None,
        gte: dict[str, Any] | None = None,
    ) -> Any:
        for column, value in (filters or {}).items():
            if value is None:
                query = query.is_(column, "null")
            elif isinstance(value, (list, tuple, set)):
                query = query.in_(column, [_clean_value(v) for v in value])
            else:
                query = query.eq(column, _clean_value(value))
        for column, value in (gte or {}).items():
            query = query.gte(column, _clean_value(value))
        return query

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_one(
        cls,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch a single row matching all filters.

        Args:
            table: Table name
            filters: Column/value pairs that must all match
            columns: PostgREST select expression

        Returns:
            Row dict, or None if no row matches

        Raises:
            SupabaseClientError: If the query fails for any other reason
        """
        client = cls.get_client()

        try:
            query = client.table(table).select(columns)
            response = cls._apply_filters(query, filters).limit(1).execute()
            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_ONE_FAILED",
                suggestion=f"Check that the {table} table exists and the filter columns are valid",
                details={"table": table, "filters": {k: str(v) for k, v in filters.items()}}
            )

    @classmethod
    def fetch_many(
        cls,
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
        """
        Fetch rows with optional ordering, pagination and text search.

        Args:
            table: Table name
            filters: Column/value pairs that must all match
            columns: PostgREST select expression
            order_by: Column to order by
            desc: Newest first when True
            limit: Page size (None = no limit)
            offset: Rows to skip
            search: Case-insensitive substring matched against search_columns
            search_columns: Columns OR-ed together for the search
            gte: Column/value pairs the row must be greater than or equal to

        Returns:
            Tuple of (rows, total matching count)

        Raises:
            SupabaseClientError: If the query fails
        """
        client = cls.get_client()

        try:
            query = client.table(table).select(columns, count="exact")
            query = cls._apply_filters(query, filters, gte)

            if search and search_columns:
                term = search.replace(",", " ").strip()
                query = query.or_(",".join(f"{col}.ilike.%{term}%" for col in search_columns))

            query = query.order(order_by, desc=desc)
            if limit is not None:
                query = query.range(offset, offset + limit - 1)

            response = query.execute()
            rows = response.data or []
            total = response.count if response.count is not None else len(rows)

            logger.debug(f"Fetched {len(rows)}/{total} rows from {table}")
            return rows, total

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list {table}: {e}",
                code="FETCH_MANY_FAILED",
                suggestion=f"Check that the {table} table exists and '{order_by}' is a valid column",
                details={"table": table, "limit": limit, "offset": offset}
            )

    @classmethod
    def count_rows(
        cls,
        table: str,
        filters: dict[str, Any] | None = None,
        gte: dict[str, Any] | None = None,
    ) -> int:
        """Count rows matching the filters without transferring them."""
        client = cls.get_client()

        try:
            query = client.table(table).select("id", count="exact").limit(1)
            response = cls._apply_filters(query, filters, gte).execute()
            return response.count or 0

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to count {table}: {e}",
                code="COUNT_FAILED",
                details={"table": table}
            )

    @classmethod
    def fetch_all(
        cls,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str = "created_at",
        desc: bool = True,
        gte: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch every matching row, one FETCH_ALL_PAGE_SIZE page at a time.

        A single unbounded select is silently truncated by the server's
        max-rows setting; aggregates must read through this instead.
        """
        rows: list[dict[str, Any]] = []
        while True:
            page, total = cls.fetch_many(
                table,
                filters=filters,
                columns=columns,
                order_by=order_by,
                desc=desc,
                limit=FETCH_ALL_PAGE_SIZE,
                offset=len(rows),
                gte=gte,
            )
            rows.extend(page)
            if not page or len(rows) >= total:
                return rows

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @classmethod
    def insert_row(cls, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a row and return it with generated columns (id, created_at).

        Raises:
            SupabaseClientError: If the insert fails or returns nothing
        """
        client = cls.get_client()
        payload = {k: _clean_value(v) for k, v in data.items()}

        try:
            response = client.table(table).insert(payload).execute()

            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message=f"Insert into {table} returned no data",
                code="INSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert into {table}: {e}",
                code="INSERT_FAILED",
                suggestion="Check required columns and unique constraints",
                details={"table": table, "columns": sorted(payload)}
            )

    @classmethod
    def update_rows(
        cls,
        table: str,
        data: dict[str, Any],
        filters: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """
        Update every row matching the filters.

        Returns:
            The updated rows (empty list when nothing matched)

        Raises:
            SupabaseClientError: If the update fails
        """
        if not filters:
            raise SupabaseClientError(
                message=f"Refusing to update {table} without filters",
                code="UNFILTERED_UPDATE"
            )

        client = cls.get_client()
        payload = {k: _clean_value(v) for k, v in data.items()}

        try:
            query = client.table(table).update(payload)
            response = cls._apply_filters(query, filters).execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update {table}: {e}",
                code="UPDATE_FAILED",
                details={"table": table, "columns": sorted(payload)}
            )
