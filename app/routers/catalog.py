# =============================================================================
# app/routers/catalog.py - Catalog CRUD Endpoints
# =============================================================================
# One set of list/get/create/update/delete routes per registered catalog
# resource (see core/services/catalog_service.py RESOURCES), plus CSV
# import/export for products.
#
# Routes (prefix /api/v1/catalog):
#   GET    /{resource}              paginated list (?search=, ?include_inactive=)
#   GET    /{resource}/{id}
#   POST   /{resource}
#   PATCH  /{resource}/{id}
#   DELETE /{resource}/{id}         soft delete
#   GET    /products/export         CSV download
#   GET    /products/template       CSV template
#   POST   /products/import         CSV upload (?auto_update=)
# =============================================================================

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, Path, Query, UploadFile
from fastapi.responses import StreamingResponse

from app.auth import AuthUser, get_current_user
from app.config import settings
from app.exceptions import FileTooLargeError
from core.models.catalog import ImportResult, Page
from core.services.catalog_service import RESOURCES, CatalogResource, CatalogService
from core.services.import_export_service import ImportExportService

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Product Import / Export
# =============================================================================
# Registered before the generic routes so /products/export is not parsed
# as an item id.

@router.get("/products/export", tags=["Catalog"])
async def export_products(user: AuthUser = Depends(get_current_user)):
    """Download the caller's active products as CSV."""
    csv_text = ImportExportService.export_products(user)
    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=products.csv"},
    )


@router.get("/products/template", tags=["Catalog"])
async def product_template(user: AuthUser = Depends(get_current_user)):
    """Download an import template with the expected columns and two sample rows."""
    return StreamingResponse(
        iter([ImportExportService.product_template()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=products_template.csv"},
    )


@router.post("/products/import", response_model=ImportResult, tags=["Catalog"])
async def import_products(
    file: Annotated[UploadFile, File(description="CSV file with one product per row")],
    auto_update: Annotated[
        bool, Query(description="Update products whose SKU already exists instead of reporting a conflict")
    ] = False,
    user: AuthUser = Depends(get_current_user),
):
    """
    Import products from CSV.

    Rows whose SKU or name matches an existing product are reported as
    conflicts unless auto_update is set. Row numbers in the result match the
    spreadsheet (the header is row 1).
    """
    filename = file.filename or "products.csv"
    content = await file.read()

    if len(content) > settings.max_import_size_bytes:
        raise FileTooLargeError(len(content) / (1024 * 1024), settings.MAX_IMPORT_SIZE_MB)

    logger.info(f"Importing products from {filename} ({len(content)} bytes) for {user.id}")
    return ImportExportService.import_products(user, content, filename, auto_update=auto_update)


# =============================================================================
# Generic Resource Routes
# =============================================================================

def register_resource_routes(target: APIRouter, resource: CatalogResource) -> None:
    """
    Add the five CRUD routes for one resource.

    The create/update body types differ per resource, so each resource gets
    its own closures instead of a single /{resource} path parameter.
    """
    create_model = resource.create_model
    update_model = resource.update_model
    tag = resource.name.capitalize()
    item_path = f"/{resource.name}/{{item_id}}"
    id_description = f"{resource.label.capitalize()} UUID"

    async def list_items(
        user: AuthUser = Depends(get_current_user),
        page: Annotated[int, Query(ge=1, description="Page number")] = 1,
        page_size: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 20,
        search: Annotated[str | None, Query(max_length=100, description="Free-text search")] = None,
        include_inactive: Annotated[bool, Query(description="Include soft-deleted rows (admins only)")] = False,
    ) -> Page[dict[str, Any]]:
        rows, total = CatalogService.list_items(
            resource,
            user,
            page=page,
            page_size=page_size,
            search=search,
            include_inactive=include_inactive,
        )
        return Page[dict[str, Any]](items=rows, total=total, page=page, page_size=page_size)

    async def get_item(
        item_id: Annotated[UUID, Path(description=id_description)],
        user: AuthUser = Depends(get_current_user),
    ) -> dict[str, Any]:
        return CatalogService.get_item(resource, str(item_id), user)

    async def create_item(
        payload: Annotated[create_model, Body()],
        user: AuthUser = Depends(get_current_user),
    ) -> dict[str, Any]:
        return CatalogService.create_item(resource, payload, user)

    async def update_item(
        item_id: Annotated[UUID, Path(description=id_description)],
        payload: Annotated[update_model, Body()],
        user: AuthUser = Depends(get_current_user),
    ) -> dict[str, Any]:
        return CatalogService.update_item(resource, str(item_id), payload, user)

    async def delete_item(
        item_id: Annotated[UUID, Path(description=id_description)],
        user: AuthUser = Depends(get_current_user),
    ) -> dict[str, Any]:
        row = CatalogService.delete_item(resource, str(item_id), user)
        return {"id": row.get("id", str(item_id)), "deleted": True}

    target.add_api_route(
        f"/{resource.name}", list_items, methods=["GET"], tags=[tag],
        summary=f"List {resource.name}",
    )
    target.add_api_route(
        item_path, get_item, methods=["GET"], tags=[tag],
        summary=f"Get a {resource.label}",
    )
    target.add_api_route(
        f"/{resource.name}", create_item, methods=["POST"], status_code=201, tags=[tag],
        summary=f"Create a {resource.label}",
    )
    target.add_api_route(
        item_path, update_item, methods=["PATCH"], tags=[tag],
        summary=f"Update a {resource.label}",
    )
    target.add_api_route(
        item_path, delete_item, methods=["DELETE"], tags=[tag],
        summary=f"Soft-delete a {resource.label}",
    )


for _resource in RESOURCES.values():
    register_resource_routes(router, _resource)
