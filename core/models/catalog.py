# =============================================================================
# core/models/catalog.py - Catalog Schemas
# =============================================================================
# Create/update payloads for every table served by the generic catalog
# router. Create models carry required fields; update models make
# everything optional so PATCH only writes what the client sent.
#
# Tenant-owned tables (suppliers, products) get user_id from the token,
# never from the body.
# =============================================================================

from decimal import Decimal
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    type: str = Field(default="supplier", description="supplier, partner, tool, template or prompt")
    description: str | None = None


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    type: str | None = None
    description: str | None = None


# -----------------------------------------------------------------------------
# Suppliers
# -----------------------------------------------------------------------------

class SupplierCreate(BaseModel):
    """
    Example:
        {
            "trade_name": "Acme Importados",
            "corporate_name": "Acme Comércio LTDA",
            "category_id": "550e8400-..."
        }
    """
    trade_name: str = Field(..., min_length=1, max_length=255)
    corporate_name: str | None = Field(default=None, max_length=255)
    category_id: UUID | None = None
    cnpj: str | None = Field(default=None, max_length=18)
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    description: str | None = None
    notes: str | None = None


class SupplierUpdate(BaseModel):
    trade_name: str | None = Field(default=None, min_length=1, max_length=255)
    corporate_name: str | None = Field(default=None, max_length=255)
    category_id: UUID | None = None
    cnpj: str | None = Field(default=None, max_length=18)
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    description: str | None = None
    notes: str | None = None
    is_verified: bool | None = None


# -----------------------------------------------------------------------------
# Products
# -----------------------------------------------------------------------------

class ProductCreate(BaseModel):
    """A seller's product with cost inputs used for pricing."""
    name: str = Field(..., min_length=1, max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    internal_code: str | None = Field(default=None, max_length=100)
    ean: str | None = Field(default=None, max_length=14)
    brand: str | None = None
    category: str | None = None
    supplier_id: UUID | None = None
    ncm: str | None = Field(default=None, max_length=10)
    weight: Decimal | None = Field(default=None, ge=0)
    cost_item: Decimal | None = Field(default=None, ge=0)
    pack_cost: Decimal | None = Field(default=None, ge=0)
    tax_percent: Decimal | None = Field(default=None, ge=0, le=100)
    dimensions: dict[str, Any] | None = None
    descriptions: dict[str, Any] | None = Field(
        default=None,
        description="Marketplace copy keyed by channel, e.g. {'amazon': {...}}"
    )
    observations: str | None = None


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    internal_code: str | None = Field(default=None, max_length=100)
    ean: str | None = Field(default=None, max_length=14)
    brand: str | None = None
    category: str | None = None
    supplier_id: UUID | None = None
    ncm: str | None = Field(default=None, max_length=10)
    weight: Decimal | None = Field(default=None, ge=0)
    cost_item: Decimal | None = Field(default=None, ge=0)
    pack_cost: Decimal | None = Field(default=None, ge=0)
    tax_percent: Decimal | None = Field(default=None, ge=0, le=100)
    dimensions: dict[str, Any] | None = None
    descriptions: dict[str, Any] | None = None
    observations: str | None = None


# -----------------------------------------------------------------------------
# Partners
# -----------------------------------------------------------------------------

class PartnerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    category_id: UUID | None = None
    specialties: str | None = None
    description: str | None = None
    website: HttpUrl | None = None


class PartnerUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    category_id: UUID | None = None
    specialties: str | None = None
    description: str | None = None
    website: HttpUrl | None = None
    is_verified: bool | None = None


# -----------------------------------------------------------------------------
# Tools
# -----------------------------------------------------------------------------

class ToolCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    type_id: UUID | None = None
    website: HttpUrl | None = None
    pricing: str | None = None
    features: list[str] = Field(default_factory=list)
    brazil_support: bool = False


class ToolUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    type_id: UUID | None = None
    website: HttpUrl | None = None
    pricing: str | None = None
    features: list[str] | None = None
    brazil_support: bool | None = None


# -----------------------------------------------------------------------------
# Templates
# -----------------------------------------------------------------------------

class TemplateCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    category_id: UUID | None = None
    variables: list[str] = Field(default_factory=list)
    usage_instructions: str | None = None


class TemplateUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1)
    category_id: UUID | None = None
    variables: list[str] | None = None
    usage_instructions: str | None = None


# -----------------------------------------------------------------------------
# Prompts
# -----------------------------------------------------------------------------

class PromptCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    category_id: UUID | None = None
    tags: list[str] = Field(default_factory=list)


class PromptUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1)
    category_id: UUID | None = None
    tags: list[str] | None = None


# -----------------------------------------------------------------------------
# Pagination
# -----------------------------------------------------------------------------

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total


class ImportConflict(BaseModel):
    row: int
    field: str
    value: str
    existing_id: str


class ImportRowError(BaseModel):
    row: int
    field: str | None = None
    message: str


class ImportResult(BaseModel):
    """Outcome of a CSV import. Row numbers match the spreadsheet (header = 1)."""
    new: int = 0
    updated: int = 0
    conflicts: list[ImportConflict] = Field(default_factory=list)
    errors: list[ImportRowError] = Field(default_factory=list)
    total_processed: int = 0
