"""Pydantic schemas for order endpoints."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.features.orders.delivery import ThresholdTier
from app.features.orders.models import OrderStatus

# =============================================================================
# Requests
# =============================================================================


class OrderCreate(BaseModel):
    """Single-product order."""

    product_id: int
    store_id: int
    requested_quantity: int = Field(..., gt=0)
    delivery_date: date | None = None
    notes: str | None = Field(None, max_length=500)


class OrderItem(BaseModel):
    """One line of a batch order."""

    product_id: int
    quantity: int = Field(..., gt=0)


class BatchOrderCreate(BaseModel):
    """Multi-product order, validated per supplier."""

    store_id: int
    items: list[OrderItem] = Field(..., min_length=1, max_length=100)
    delivery_date: date | None = None
    notes: str | None = Field(None, max_length=500)


class DeliveryCheckRequest(BaseModel):
    """Dry-run of the per-supplier delivery check."""

    items: list[OrderItem] = Field(..., min_length=1, max_length=100)


# =============================================================================
# Responses
# =============================================================================


class OrderResponse(BaseModel):
    """A stored order line."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    product_id: int
    store_id: int
    requested_quantity: int
    approved_quantity: int | None = None
    unit_cost: Decimal
    total_cost: Decimal
    supplier: str | None = None
    status: OrderStatus
    requested_by: int | None = None
    requested_at: datetime
    delivery_date: date | None = None
    notes: str | None = None


class DeliveryInfo(BaseModel):
    """How an approved order relates to its delivery threshold."""

    supplier: str
    order_value: Decimal
    threshold: Decimal
    surplus: Decimal
    tier: ThresholdTier


class OrderCreated(BaseModel):
    """Result of a successful single-product order."""

    order_id: int
    order_number: str
    remaining_stock: int
    total_cost: Decimal
    delivery_threshold: Decimal
    delivery_qualified: bool = True
    delivery_info: DeliveryInfo


class SupplierSummary(BaseModel):
    """A supplier group that met its threshold."""

    supplier: str
    total: Decimal
    threshold: Decimal
    surplus: Decimal


class BatchOrderCreated(BaseModel):
    """Result of a successful batch order."""

    order_number: str
    total_items: int
    total_cost: Decimal
    orders: list[OrderResponse]
    supplier_summary: list[SupplierSummary]


class DeliveryLine(BaseModel):
    """A priced line in a delivery check."""

    product_id: int
    name: str
    unit: str
    quantity: int
    unit_cost: Decimal
    line_total: Decimal


class SupplierDeliveryStatus(BaseModel):
    """Delivery status of one supplier group."""

    supplier: str
    total: Decimal
    threshold: Decimal
    can_deliver: bool
    difference: Decimal = Field(..., description="Surplus (positive) or shortage (negative).")
    items: list[DeliveryLine]


class DeliveryCheckResponse(BaseModel):
    """Dry-run result for a prospective batch order."""

    suppliers: list[SupplierDeliveryStatus]
    all_can_deliver: bool
    total_suppliers: int
    qualified_count: int
    failed_count: int
    skipped_product_ids: list[int] = Field(default_factory=list)


class DeliveryThresholdInfo(BaseModel):
    """Delivery rule of an active product."""

    product_id: int
    code: str
    name: str
    supplier: str | None = None
    unit: str
    unit_cost: Decimal
    delivery_threshold: Decimal
    minimum_quantity: int
    tier: ThresholdTier
