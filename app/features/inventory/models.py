"""Product catalog and inventory transaction ORM models."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin


class TransactionType(str, Enum):
    """Kinds of stock movement.

    - INBOUND: goods received, adds to stock
    - OUTBOUND: goods issued (orders), subtracts from stock
    - ADJUSTMENT: stock count correction, sets stock to an absolute value
    """

    INBOUND = "inbound"
    OUTBOUND = "outbound"
    ADJUSTMENT = "adjustment"


class StockLevel(str, Enum):
    """Stock alert levels."""

    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"


class Product(TimestampMixin, Base):
    """Product with stock, cost and ordering rules.

    Attributes:
        id: Primary key.
        code: Unique product code.
        name: Display name.
        category: Product category.
        unit: Unit of measure.
        current_stock: Units in the central warehouse.
        min_stock: At or below this level a low-stock alert fires.
        max_stock: Target maximum stock.
        unit_cost: Purchase cost per unit.
        selling_price: Retail price per unit.
        supplier: Supplier name; orders are grouped by it.
        delivery_threshold: Minimum order value for delivery.
        frequent_order_days: Window for the frequent-order rule (0 disables).
        rare_order_days: Max days between orders for the rare-order rule (0 disables).
        is_active: Inactive products cannot be ordered.
    """

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    category: Mapped[str | None] = mapped_column(String(100), index=True, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit: Mapped[str] = mapped_column(String(20), default="pcs")

    # Stock
    current_stock: Mapped[int] = mapped_column(Integer, default=0)
    min_stock: Mapped[int] = mapped_column(Integer, default=10)
    max_stock: Mapped[int] = mapped_column(Integer, default=1000)

    # Pricing
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal(0))
    selling_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    # Supply and ordering rules
    supplier: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    supplier_contact: Mapped[str | None] = mapped_column(String(100), nullable=True)
    delivery_threshold: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal(1000))
    frequent_order_days: Mapped[int] = mapped_column(Integer, default=1)
    rare_order_days: Mapped[int] = mapped_column(Integer, default=7)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_product_stock_non_negative"),
        CheckConstraint("min_stock >= 0", name="ck_product_min_stock_non_negative"),
        CheckConstraint("unit_cost >= 0", name="ck_product_unit_cost_non_negative"),
        CheckConstraint("delivery_threshold >= 0", name="ck_product_threshold_non_negative"),
        CheckConstraint("frequent_order_days >= 0", name="ck_product_frequent_days"),
        CheckConstraint("rare_order_days >= 0", name="ck_product_rare_days"),
    )

    @property
    def stock_level(self) -> StockLevel | None:
        """Alert level for the current stock, or None when stock is healthy."""
        if self.current_stock <= 0:
            return StockLevel.OUT_OF_STOCK
        if self.current_stock <= self.min_stock:
            return StockLevel.LOW_STOCK
        return None


class InventoryTransaction(TimestampMixin, Base):
    """Stock movement ledger.

    Attributes:
        id: Primary key.
        transaction_id: Unique external identifier (UUID hex).
        product_id: Product moved.
        transaction_type: inbound, outbound or adjustment.
        quantity: Signed stock delta.
        stock_after: Stock after the movement.
        reason: Short reason.
        reference_no: Related document (order number...).
        performed_by: Acting user.
    """

    __tablename__ = "inventory_transaction"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_id: Mapped[str] = mapped_column(String(32), unique=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("product.id"), index=True)
    transaction_type: Mapped[str] = mapped_column(String(20), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    stock_after: Mapped[int] = mapped_column(Integer)
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reference_no: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    performed_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('inbound', 'outbound', 'adjustment')",
            name="ck_inventory_transaction_valid_type",
        ),
        CheckConstraint("stock_after >= 0", name="ck_inventory_transaction_stock_after"),
    )
