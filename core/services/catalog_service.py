# =============================================================================
# core/services/catalog_service.py - Generic Catalog CRUD
# =============================================================================
# Suppliers, products, partners, tools, templates, prompts and categories
# are all plain tables with the same lifecycle: list (paginated, searchable),
# get, create, partial update, soft delete. Instead of one service per
# table, each table is described once as a CatalogResource and a single
# CatalogService works on any of them.
#
# Two access rules are expressed per resource:
# - owner_scoped: rows carry user_id; users only see their own rows
#   (admins see everything)
# - admin_write: hub content everyone can read but only admins can change
#
# Usage:
#   from core.services.catalog_service import CatalogService, get_resource
#   products = get_resource("products")
#   rows, total = CatalogService.list_items(products, user, page=1, page_size=20)
# =============================================================================

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from app.auth.models import AuthUser
from app.exceptions import ForbiddenError, InvalidPayloadError, ResourceNotFoundError
from core.models.catalog import (
    CategoryCreate,
    CategoryUpdate,
    PartnerCreate,
    PartnerUpdate,
    ProductCreate,
    ProductUpdate,
    PromptCreate,
    PromptUpdate,
    SupplierCreate,
    SupplierUpdate,
    TemplateCreate,
    TemplateUpdate,
    ToolCreate,
    ToolUpdate,
)
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogResource:
    """
    Description of one catalog table.

    Attributes:
        name: URL segment and registry key (plural)
        label: Singular name used in error messages
        table: Supabase table
        create_model / update_model: Request body schemas
        owner_scoped: Rows belong to the user in user_id
        admin_write: Only admins may create/update/delete
        search_columns: Columns matched by ?search=
        references: Foreign-key column -> resource name, checked on write
    """
    name: str
    label: str
    table: str
    create_model: type[BaseModel]
    update_model: type[BaseModel]
    owner_scoped: bool = False
    admin_write: bool = False
    search_columns: tuple[str, ...] = ()
    references: dict[str, str] = field(default_factory=dict)
    order_by: str = "created_at"


RESOURCES: dict[str, CatalogResource] = {
    resource.name: resource
    for resource in (
        CatalogResource(
            name="categories",
            label="category",
            table="categories",
            create_model=CategoryCreate,
            update_model=CategoryUpdate,
            admin_write=True,
            search_columns=("name",),
            order_by="name",
        ),
        CatalogResource(
            name="suppliers",
            label="supplier",
            table="suppliers",
            create_model=SupplierCreate,
            update_model=SupplierUpdate,
            owner_scoped=True,
            search_columns=("trade_name", "corporate_name", "description"),
            references={"category_id": "categories"},
        ),
        CatalogResource(
            name="products",
            label="product",
            table="products",
            create_model=ProductCreate,
            update_model=ProductUpdate,
            owner_scoped=True,
            search_columns=("name", "sku", "brand", "ean"),
            references={"supplier_id": "suppliers"},
        ),
        CatalogResource(
            name="partners",
            label="partner",
            table="partners",
            create_model=PartnerCreate,
            update_model=PartnerUpdate,
            admin_write=True,
            search_columns=("name", "specialties", "description"),
            references={"category_id": "categories"},
        ),
        CatalogResource(
            name="tools",
            label="tool",
            table="tools",
            create_model=ToolCreate,
            update_model=ToolUpdate,
            admin_write=True,
            search_columns=("name", "description"),
        ),
        CatalogResource(
            name="templates",
            label="template",
            table="templates",
            create_model=TemplateCreate,
            update_model=TemplateUpdate,
            admin_write=True,
            search_columns=("title", "content"),
            references={"category_id": "categories"},
        ),
        CatalogResource(
            name="prompts",
            label="prompt",
            table="prompts",
            create_model=PromptCreate,
            update_model=PromptUpdate,
            admin_write=True,
            search_columns=("title", "content"),
            references={"category_id": "categories"},
        ),
    )
}


def get_resource(name: str) -> CatalogResource:
    """
    Raises:
        ResourceNotFoundError: If no resource is registered under name
    """
    try:
        return RESOURCES[name]
    except KeyError:
        raise ResourceNotFoundError("resource", name)


class CatalogService:
    """CRUD operations shared by every catalog resource."""

    @staticmethod
    def list_items(
        resource: CatalogResource,
        user: AuthUser,
        page: int = 1,
        page_size: int = 20,
        search: str | None = None,
        include_inactive: bool = False,
        filters: dict[str, Any] | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        List visible rows, newest first (or by the resource's order column).

        Only admins can see soft-deleted rows.

        Returns:
            Tuple of (rows for the page, total matching rows)
        """
        query_filters: dict[str, Any] = dict(filters or {})
        if not (include_inactive and user.is_admin):
            query_filters["is_active"] = True
        if resource.owner_scoped and not user.is_admin:
            query_filters["user_id"] = user.id

        return SupabaseClient.fetch_many(
            resource.table,
            filters=query_filters,
            order_by=resource.order_by,
            desc=resource.order_by == "created_at",
            limit=page_size,
            offset=(page - 1) * page_size,
            search=search,
            search_columns=list(resource.search_columns),
        )

    @staticmethod
    def get_item(resource: CatalogResource, item_id: UUID | str, user: AuthUser) -> dict[str, Any]:
        """
        Raises:
            ResourceNotFoundError: Missing, soft-deleted, or owned by another user
        """
        row = SupabaseClient.fetch_one(resource.table, {"id": item_id})
        if not row or not CatalogService._can_see(resource, row, user):
            raise ResourceNotFoundError(resource.label, str(item_id))
        return row

    @staticmethod
    def create_item(resource: CatalogResource, payload: BaseModel, user: AuthUser) -> dict[str, Any]:
        """
        Insert a row. Owner-scoped rows are stamped with the caller's id.

        Raises:
            ForbiddenError: Non-admin writing hub content
            InvalidPayloadError: A referenced row doesn't exist
        """
        CatalogService._check_write(resource, user, "create")
        data = payload.model_dump(mode="json", exclude_none=True)
        CatalogService._check_references(resource, data, user)

        data["is_active"] = True
        if resource.owner_scoped:
            data["user_id"] = normalize_uuid(user.id)

        row = SupabaseClient.insert_row(resource.table, data)
        logger.info(f"Created {resource.label} {row.get('id')} by {user.id}")
        return row

    @staticmethod
    def update_item(
        resource: CatalogResource,
        item_id: UUID | str,
        payload: BaseModel,
        user: AuthUser,
    ) -> dict[str, Any]:
        """Apply only the fields the client sent."""
        CatalogService._check_write(resource, user, "update")
        current = CatalogService.get_item(resource, item_id, user)

        changes = payload.model_dump(mode="json", exclude_unset=True)
        if not changes:
            return current
        CatalogService._check_references(resource, changes, user)

        changes["updated_at"] = utc_now_iso()
        rows = SupabaseClient.update_rows(resource.table, changes, {"id": item_id})
        logger.info(f"Updated {resource.label} {item_id}: {sorted(changes)}")
        return rows[0] if rows else {**current, **changes}

    @staticmethod
    def delete_item(resource: CatalogResource, item_id: UUID | str, user: AuthUser) -> dict[str, Any]:
        """Soft delete: the row stays but is_active becomes false."""
        CatalogService._check_write(resource, user, "delete")
        current = CatalogService.get_item(resource, item_id, user)

        changes = {"is_active": False, "updated_at": utc_now_iso()}
        rows = SupabaseClient.update_rows(resource.table, changes, {"id": item_id})
        logger.info(f"Soft-deleted {resource.label} {item_id}")
        return rows[0] if rows else {**current, **changes}

    # -------------------------------------------------------------------------
    # Access helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _can_see(resource: CatalogResource, row: dict[str, Any], user: AuthUser) -> bool:
        if user.is_admin:
            return True
        if row.get("is_active") is False:
            return False
        if resource.owner_scoped:
            return str(row.get("user_id")) == str(user.id)
        return True

    @staticmethod
    def _check_write(resource: CatalogResource, user: AuthUser, action: str) -> None:
        if resource.admin_write and not user.is_admin:
            raise ForbiddenError(f"{action} {resource.name}")

    @staticmethod
    def _check_references(resource: CatalogResource, data: dict[str, Any], user: AuthUser) -> None:
        for column, target_name in resource.references.items():
            value = data.get(column)
            if not value:
                continue
            try:
                CatalogService.get_item(RESOURCES[target_name], value, user)
            except ResourceNotFoundError:
                raise InvalidPayloadError(
                    f"{column} does not reference an existing {RESOURCES[target_name].label}",
                    {column: value},
                )
