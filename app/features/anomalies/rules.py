"""Order-frequency anomaly rules.

Two rules per product, both driven by the product's own settings:

- rare: no order for longer than ``rare_order_days``
  (a never-ordered product counts from its creation date)
- frequent: more than one order within ``frequent_order_days``

A setting of 0 disables the rule. Inputs are plain snapshots so the rules can
be evaluated without a database.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from app.shared.utils import round_half_up

ALL_STORES = "All stores"
_DAY = timedelta(days=1)


class AnomalyType(str, Enum):
    """Kinds of order-frequency anomaly."""

    RARE_ORDER = "rare_order"
    FREQUENT_ORDER = "frequent_order"

    @property
    def alert_type(self) -> str:
        """Alert name used in notifications."""
        return "too_rare" if self is AnomalyType.RARE_ORDER else "too_frequent"


@dataclass(frozen=True)
class ProductSnapshot:
    """Product fields the rules read."""

    id: int
    name: str
    unit: str
    created_at: datetime
    frequent_order_days: int
    rare_order_days: int
    supplier: str | None = None
    current_stock: int | None = None


@dataclass(frozen=True)
class OrderSnapshot:
    """An order of the product, as seen by the rules."""

    requested_at: datetime
    quantity: int
    store_name: str


@dataclass(frozen=True)
class Anomaly:
    """A detected anomaly with a human-readable message."""

    type: AnomalyType
    product_id: int
    product_name: str
    store_name: str
    threshold_days: int
    message: str
    supplier: str | None = None
    current_stock: int | None = None
    anomaly_days: int | None = None
    last_order_date: datetime | None = None
    last_order_quantity: int | None = None
    recent_orders_count: int | None = None
    total_quantity: int | None = None
    period_days: int | None = None
    avg_days_between: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data


def _whole_days(delta: timedelta) -> int:
    return math.ceil(delta / _DAY)


def check_rare(
    product: ProductSnapshot,
    recent_orders: Sequence[OrderSnapshot],
    now: datetime,
) -> Anomaly | None:
    """Flag a product that has not been ordered for too long.

    Args:
        product: Product snapshot.
        recent_orders: Product orders, newest first.
        now: Evaluation time.

    Returns:
        A rare_order anomaly, or None.
    """
    limit = product.rare_order_days
    if limit <= 0:
        return None

    if not recent_orders:
        age = _whole_days(now - product.created_at)
        if age <= limit:
            return None
        return Anomaly(
            type=AnomalyType.RARE_ORDER,
            product_id=product.id,
            product_name=product.name,
            store_name=ALL_STORES,
            threshold_days=limit,
            message=f"{product.name} has never been ordered, exceeding the {limit}-day limit",
            supplier=product.supplier,
            current_stock=product.current_stock,
            anomaly_days=age,
            last_order_date=None,
            last_order_quantity=0,
        )

    last = recent_orders[0]
    if last.requested_at >= now - timedelta(days=limit):
        return None

    days = _whole_days(now - last.requested_at)
    return Anomaly(
        type=AnomalyType.RARE_ORDER,
        product_id=product.id,
        product_name=product.name,
        store_name=last.store_name,
        threshold_days=limit,
        message=(
            f"{last.store_name} {product.name} not ordered for {days} days; "
            f"last order {last.requested_at:%Y-%m-%d}, "
            f"{last.quantity} {product.unit}"
        ),
        supplier=product.supplier,
        current_stock=product.current_stock,
        anomaly_days=days,
        last_order_date=last.requested_at,
        last_order_quantity=last.quantity,
    )


def check_frequent(
    product: ProductSnapshot,
    recent_orders: Sequence[OrderSnapshot],
    now: datetime,
) -> Anomaly | None:
    """Flag a product ordered more than once within its frequency window.

    Args:
        product: Product snapshot.
        recent_orders: Product orders, newest first.
        now: Evaluation time.

    Returns:
        A frequent_order anomaly, or None.
    """
    window = product.frequent_order_days
    if window <= 0 or len(recent_orders) < 2:
        return None

    cutoff = now - timedelta(days=window)
    in_window = [o for o in recent_orders if o.requested_at >= cutoff]
    if len(in_window) <= 1:
        return None

    count = len(in_window)
    total_quantity = sum(o.quantity for o in in_window)
    store_name = in_window[0].store_name
    return Anomaly(
        type=AnomalyType.FREQUENT_ORDER,
        product_id=product.id,
        product_name=product.name,
        store_name=store_name,
        threshold_days=window,
        message=(
            f"{store_name} {product.name} ordered {count} times within {window} day(s), "
            f"{total_quantity} {product.unit} in total"
        ),
        supplier=product.supplier,
        current_stock=product.current_stock,
        last_order_date=in_window[0].requested_at,
        recent_orders_count=count,
        total_quantity=total_quantity,
        period_days=window,
        avg_days_between=float(round_half_up(window / count, 1)),
    )


def check_product(
    product: ProductSnapshot,
    recent_orders: Sequence[OrderSnapshot],
    now: datetime,
) -> list[Anomaly]:
    """Run both rules; rare first."""
    found = [check_rare(product, recent_orders, now), check_frequent(product, recent_orders, now)]
    return [a for a in found if a is not None]
