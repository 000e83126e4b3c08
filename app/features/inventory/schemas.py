"""Pydantic schemas for product and inventory endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.features.inventory.models import StockLevel, TransactionType

# =============================================================================
# Products
# =============================================================================


class _ProductFields(BaseModel):
    category: str | None = Field(None, max_length=100)
    description: str | None = None
    selling_price: Decimal | None = Field(None, ge=0)
    supplier: str | None = Field(None, max_length=100)
    supplier_contact: str | None = Field(None, max_length=100)


class ProductCreate(_ProductFields):
    """Request schema for creating a product."""

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    unit: str = Field("pcs", max_length=20)
    current_stock: int = Field(0, ge=0)
    min_stock: int = Field(10, ge=0)
    max_stock: int = Field(1000, ge=0)
    unit_cost: Decimal = Field(Decimal(0), ge=0)
    delivery_threshold: Decimal = Field(
        Decimal(1000), ge=0, description="Minimum order value for delivery."
    )
    frequent_order_days: int = Field(
        1, ge=0, description="More than one order within this many days is flagged. 0 disables."
    )
    rare_order_days: int = Field(
        7, ge=0, description="No order for longer than this many days is flagged. 0 disables."
    )


class ProductUpdate(_ProductFields):
    """Partial update; stock changes go through inventory transactions."""

    code: str | None = Field(None, min_length=1, max_length=50)
    name: str | None = Field(None, min_length=1, max_length=200)
    unit: str | None = Field(None, max_length=20)
    min_stock: int | None = Field(None, ge=0)
    max_stock: int | None = Field(None, ge=0)
    unit_cost: Decimal | None = Field(None, ge=0)
    delivery_threshold: Decimal | None = Field(None, ge=0)
    frequent_order_days: int | None = Field(None, ge=0)
    rare_order_days: int | None = Field(None, ge=0)
    is_active: bool | None = None


class ProductResponse(BaseModel):
    """A product with stock and ordering rules."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    category: str | None = None
    description: str | None = None
    unit: str
    current_stock: int
    min_stock: int
    max_stock: int
    unit_cost: Decimal
    selling_price: Decimal | None = None
    supplier: str | None = None
    supplier_contact: str | None = None
    delivery_threshold: Decimal
    frequent_order_days: int
    rare_order_days: int
    is_active: bool
    stock_level: StockLevel | None = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Inventory
# =============================================================================


class TransactionCreate(BaseModel):
    """Stock movement request.

    For `inbound` and `outbound`, `quantity` is the number of units moved.
    For `adjustment`, it is the counted stock to set.
    """

    product_id: int
    transaction_type: TransactionType
    quantity: int = Field(..., ge=0)
    reason: str | None = Field(None, max_length=255)
    reference_no: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=500)


class TransactionResponse(BaseModel):
    """A stock movement."""

    model_config = ConfigDict(from_attributes=True)

    transaction_id: str
    product_id: int
    transaction_type: TransactionType
    quantity: int = Field(..., description="Signed stock delta.")
    stock_after: int
    reason: str | None = None
    reference_no: str | None = None
    performed_by: int | None = None
    notes: str | None = None
    created_at: datetime


class StockAlert(BaseModel):
    """A product at or below its minimum stock."""

    product_id: int
    code: str
    name: str
    current_stock: int
    min_stock: int
    level: StockLevel
    supplier: str | None = None
