# =============================================================================
# core/services/import_export_service.py - Product CSV Import/Export
# =============================================================================
# Sellers maintain their catalog in spreadsheets. This service:
# - exports the caller's active products as CSV
# - serves an empty template with sample rows
# - imports a CSV, creating new products and, when asked to, updating
#   existing ones matched by SKU
#
# Import rules:
# - name and sku are required on every row
# - cost columns must be numbers >= 0 (tax_percent <= 100)
# - a row whose sku or name matches an existing product is a conflict,
#   unless auto_update is on: then a sku match updates that product and a
#   name-only match is created as a new product
# - row numbers in the result match the spreadsheet (header is row 1)
# =============================================================================

import csv
import io
import logging
import math
from typing import Any

import pandas as pd

from app.auth.models import AuthUser
from app.exceptions import ImportFileError
from core.models.catalog import ImportConflict, ImportResult, ImportRowError
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = "products"

PRODUCT_COLUMNS = [
    "name",
    "sku",
    "internal_code",
    "ean",
    "brand",
    "category",
    "ncm",
    "weight",
    "cost_item",
    "pack_cost",
    "tax_percent",
    "observations",
]

REQUIRED_COLUMNS = ("name", "sku")
NUMERIC_COLUMNS = ("weight", "cost_item", "pack_cost", "tax_percent")

TEMPLATE_SAMPLE_ROWS = [
    {
        "name": "Garrafa Térmica Inox 1L",
        "sku": "GT-INOX-1L",
        "internal_code": "0001",
        "ean": "7891234567895",
        "brand": "Acme",
        "category": "Casa e Cozinha",
        "ncm": "96170010",
        "weight": "0.45",
        "cost_item": "32.90",
        "pack_cost": "2.50",
        "tax_percent": "12",
        "observations": "Sample row, delete before importing",
    },
    {
        "name": "Kit 3 Potes Herméticos",
        "sku": "PH-KIT-3",
        "internal_code": "0002",
        "ean": "",
        "brand": "Acme",
        "category": "Casa e Cozinha",
        "ncm": "39241000",
        "weight": "0.80",
        "cost_item": "18.00",
        "pack_cost": "1.80",
        "tax_percent": "12",
        "observations": "",
    },
]


class ImportExportService:

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    @staticmethod
    def export_products(user: AuthUser) -> str:
        """Caller's active products as CSV text, oldest first."""
        rows = SupabaseClient.fetch_all(
            PRODUCTS_TABLE,
            filters={"user_id": user.id, "is_active": True},
            order_by="created_at",
            desc=False,
        )
        df = pd.DataFrame(rows, columns=PRODUCT_COLUMNS)
        logger.info(f"Exporting {len(rows)} products for {user.id}")
        return df.to_csv(index=False)

    @staticmethod
    def product_template() -> str:
        return pd.DataFrame(TEMPLATE_SAMPLE_ROWS, columns=PRODUCT_COLUMNS).to_csv(index=False)

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    @staticmethod
    def read_csv(content: bytes, filename: str) -> pd.DataFrame:
        """
        Parse an uploaded CSV keeping every cell as text.

        Raises:
            ImportFileError: Unreadable file or missing required columns
        """
        try:
            df = pd.read_csv(
                io.BytesIO(content),
                dtype=str,
                keep_default_na=False,
                sep=None,
                engine="python",
                encoding="utf-8-sig",
            )
        except (csv.Error, pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, ValueError) as e:
            raise ImportFileError(filename, str(e))

        df.columns = [str(col).strip().lower() for col in df.columns]
        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ImportFileError(filename, f"missing columns: {', '.join(missing)}")
        return df

    @staticmethod
    def import_products(
        user: AuthUser,
        content: bytes,
        filename: str = "products.csv",
        auto_update: bool = False,
    ) -> ImportResult:
        """
        Import products from CSV.

        Args:
            user: Owner of the imported products
            content: Raw file bytes
            auto_update: Update sku matches instead of reporting them as conflicts

        Returns:
            ImportResult with counts, conflicts and per-row errors
        """
        df = ImportExportService.read_csv(content, filename)
        result = ImportResult(total_processed=len(df))

        existing = SupabaseClient.fetch_all(
            PRODUCTS_TABLE,
            filters={"user_id": user.id, "is_active": True},
            columns="id, name, sku",
        )
        by_sku = {str(p["sku"]).strip().lower(): p for p in existing if p.get("sku")}
        by_name = {str(p["name"]).strip().lower(): p for p in existing if p.get("name")}
        seen_skus: set[str] = set()

        for index, raw in df.iterrows():
            row_number = int(index) + 2
            data, errors = _parse_product_row(raw.to_dict(), row_number)
            if errors:
                result.errors.extend(errors)
                continue

            sku_key = data["sku"].lower()
            if sku_key in seen_skus:
                result.errors.append(ImportRowError(
                    row=row_number, field="sku", message=f"Duplicate SKU in file: {data['sku']}"
                ))
                continue
            seen_skus.add(sku_key)

            sku_match = by_sku.get(sku_key)
            name_match = by_name.get(data["name"].lower())

            if (sku_match or name_match) and not auto_update:
                matched_field, matched = ("sku", sku_match) if sku_match else ("name", name_match)
                result.conflicts.append(ImportConflict(
                    row=row_number,
                    field=matched_field,
                    value=data[matched_field],
                    existing_id=str(matched["id"]),
                ))
                continue

            try:
                if sku_match:
                    SupabaseClient.update_rows(
                        PRODUCTS_TABLE,
                        {**data, "updated_at": utc_now_iso()},
                        {"id": sku_match["id"]},
                    )
                    result.updated += 1
                else:
                    SupabaseClient.insert_row(PRODUCTS_TABLE, {
                        **data,
                        "user_id": normalize_uuid(user.id),
                        "is_active": True,
                    })
                    result.new += 1
            except SupabaseClientError as e:
                logger.warning(f"Import row {row_number} failed: {e}")
                result.errors.append(ImportRowError(row=row_number, message=e.message))

        logger.info(
            f"Product import for {user.id}: {result.new} new, {result.updated} updated, "
            f"{len(result.conflicts)} conflicts, {len(result.errors)} errors"
        )
        return result


def _parse_product_row(raw: dict[str, Any], row_number: int) -> tuple[dict[str, Any], list[ImportRowError]]:
    """Validate one CSV row and convert it to a products payload."""
    errors: list[ImportRowError] = []
    data: dict[str, Any] = {}

    for column in PRODUCT_COLUMNS:
        value = str(raw.get(column, "") or "").strip()
        if not value:
            continue

        if column in NUMERIC_COLUMNS:
            try:
                number = float(value.replace(",", "."))
            except ValueError:
                errors.append(ImportRowError(row=row_number, field=column, message=f"Not a number: {value}"))
                continue
            if not math.isfinite(number):
                errors.append(ImportRowError(row=row_number, field=column, message=f"Not a finite number: {value}"))
                continue
            if number < 0 or (column == "tax_percent" and number > 100):
                errors.append(ImportRowError(row=row_number, field=column, message=f"Out of range: {value}"))
                continue
            data[column] = number
        else:
            data[column] = value

    for column in REQUIRED_COLUMNS:
        if column not in data:
            errors.append(ImportRowError(row=row_number, field=column, message=f"{column} is required"))

    return data, errors
