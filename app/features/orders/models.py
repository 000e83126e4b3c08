"""Order ORM model: one row per ordered product."""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin, UTCDateTime, utcnow


class OrderStatus(str, Enum):
    """Order lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Statuses that count as a real order for the frequency rules
ACTIVE_ORDER_STATUSES = (OrderStatus.APPROVED.value, OrderStatus.PENDING.value)


class Order(TimestampMixin, Base):
    """Product order from a store to the central warehouse.

    Orders meeting the delivery threshold are approved immediately and
    stock is decremented in the same transaction. A batch order shares one
    base number; each line gets ``{base}-{product_id}``.

    Attributes:
        id: Primary key.
        order_number: Unique reference.
        product_id: Ordered product.
        store_id: Ordering store.
        requested_quantity: Units asked for.
        approved_quantity: Units approved.
        unit_cost: Cost per unit at order time.
        total_cost: unit_cost * approved quantity.
        supplier: Supplier at order time.
        status: pending, approved, rejected, delivered or cancelled.
        requested_by: Ordering employee.
        requested_at: Order time (UTC).
        delivery_date: Requested delivery date.
    """

    __tablename__ = "product_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("product.id"), index=True)
    store_id: Mapped[int] = mapped_column(Integer, ForeignKey("store.id"), index=True)

    requested_quantity: Mapped[int] = mapped_column(Integer)
    approved_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    supplier: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING.value, index=True)
    requested_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True, index=True
    )
    requested_at: Mapped[datetime.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, index=True
    )
    delivery_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("requested_quantity > 0", name="ck_order_quantity_positive"),
        CheckConstraint("total_cost >= 0", name="ck_order_total_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'delivered', 'cancelled')",
            name="ck_order_valid_status",
        ),
    )
