# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the Pydantic models to ensure:
# - Valid data is accepted and parsed correctly
# - Invalid data raises ValidationError
# - Partial-update models only report the fields that were sent
# - Default values work as expected
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from core.models import (
    FINAL_STEP,
    LISTING_STEPS,
    REQUIRED_PRODUCT_FIELDS,
    AgentConfig,
    AgentUpdate,
    CreditGrantRequest,
    ListingProductData,
    ListingSessionResponse,
    ListingStatus,
    Page,
    ProductCreate,
    ProductUpdate,
    ProviderName,
    SupplierCreate,
)


# =============================================================================
# Catalog Model Tests
# =============================================================================

class TestProductCreate:
    """Tests for ProductCreate model."""

    def test_valid_product(self):
        """Test creating a valid product with cost inputs."""
        # Arrange
        data = {
            "name": "Garrafa Térmica Inox 1L",
            "sku": "GT-INOX-1L",
            "cost_item": "32.90",
            "pack_cost": 2.5,
            "tax_percent": 12,
        }

        # Act
        product = ProductCreate(**data)

        # Assert
        assert product.cost_item == Decimal("32.90")
        assert product.tax_percent == Decimal("12")
        assert product.supplier_id is None

    def test_name_required(self):
        with pytest.raises(ValidationError):
            ProductCreate(sku="X-1")

    @pytest.mark.parametrize("field,value", [
        ("cost_item", -1),
        ("pack_cost", -0.01),
        ("tax_percent", 100.5),
    ])
    def test_invalid_numbers(self, field, value):
        """Costs can't be negative and tax can't exceed 100%."""
        with pytest.raises(ValidationError):
            ProductCreate(name="Mug", **{field: value})

    def test_json_dump_has_no_decimals(self):
        product = ProductCreate(name="Mug", cost_item="10.50")

        dumped = product.model_dump(mode="json", exclude_none=True)

        assert isinstance(dumped["cost_item"], str)
        assert "supplier_id" not in dumped


class TestPartialUpdates:
    """Update models only carry what the client sent."""

    def test_exclude_unset(self):
        update = ProductUpdate(brand="Acme")

        assert update.model_dump(exclude_unset=True) == {"brand": "Acme"}

    def test_explicit_null_is_kept(self):
        update = ProductUpdate(brand=None)

        assert update.model_dump(exclude_unset=True) == {"brand": None}

    def test_supplier_requires_trade_name(self):
        with pytest.raises(ValidationError):
            SupplierCreate(corporate_name="Acme LTDA")


class TestPage:
    """Tests for the generic Page model."""

    @pytest.mark.parametrize("page,total,expected", [(1, 45, True), (3, 45, False), (2, 40, False)])
    def test_has_more(self, page, total, expected):
        result = Page[dict](items=[], total=total, page=page, page_size=20)

        assert result.has_more is expected


# =============================================================================
# Listing Model Tests
# =============================================================================

class TestListingSteps:
    """The step table drives the whole pipeline."""

    def test_steps_chain(self):
        """Each step requires the previous step's output."""
        for number in range(2, FINAL_STEP + 1):
            assert LISTING_STEPS[number].requires == LISTING_STEPS[number - 1].output

    def test_first_step_reads_reviews(self):
        assert LISTING_STEPS[1].requires == "reviews_data"
        assert "reviews_data" in REQUIRED_PRODUCT_FIELDS

    def test_final_step(self):
        assert FINAL_STEP == 4
        assert LISTING_STEPS[FINAL_STEP].output == "description"


class TestListingModels:
    """Tests for ListingProductData / ListingSessionResponse."""

    def test_product_data_all_optional(self):
        data = ListingProductData()

        assert data.model_dump(exclude_none=True) == {}

    def test_asin_max_length(self):
        with pytest.raises(ValidationError):
            ListingProductData(asin="B08N5WRWNW1")

    def test_session_response_from_row(self):
        # Arrange: a row as Supabase returns it (strings everywhere)
        row = {
            "id": str(uuid4()),
            "user_id": str(uuid4()),
            "session_hash": "a1b2c3",
            "status": "processing",
            "current_step": 2,
            "created_at": "2026-01-01T10:00:00+00:00",
            "unknown_column": "ignored",
        }

        # Act
        session = ListingSessionResponse(**row)

        # Assert
        assert isinstance(session.id, UUID)
        assert session.status == ListingStatus.PROCESSING
        assert session.titles is None

    def test_session_response_rejects_bad_step(self):
        with pytest.raises(ValidationError):
            ListingSessionResponse(
                id=uuid4(), user_id=uuid4(), session_hash="x", status="active", current_step=5
            )


# =============================================================================
# Credit and Agent Model Tests
# =============================================================================

class TestCreditModels:

    def test_grant_amount_positive(self):
        with pytest.raises(ValidationError):
            CreditGrantRequest(user_id=uuid4(), amount=0)

    def test_grant_default_description(self):
        grant = CreditGrantRequest(user_id=uuid4(), amount=10)

        assert grant.description == "Manual credit grant"


class TestAgentModels:

    def test_defaults(self):
        agent = AgentConfig(id="agent-amazon-listings", name="Amazon Listing Optimizer")

        assert agent.provider == ProviderName.OPENAI
        assert agent.is_active is True

    def test_temperature_range(self):
        with pytest.raises(ValidationError):
            AgentUpdate(temperature=2.5)

    def test_unknown_provider(self):
        with pytest.raises(ValidationError):
            AgentConfig(id="a", name="A", provider="mistral")
