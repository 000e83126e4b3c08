"""Delivery threshold rules.

Suppliers only deliver when an order reaches a minimum value. A single-product
order is checked against that product's threshold; a batch is grouped by
supplier and each group's total is checked against the group threshold
(taken from the first product of the group).

Everything here is pure: no database, no settings lookups.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

UNASSIGNED_SUPPLIER = "Unassigned supplier"


class ThresholdTier(str, Enum):
    """Rough size class of a delivery threshold."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class DeliveryCheck:
    """Outcome of checking one order value against a threshold.

    Attributes:
        order_value: unit_cost * quantity.
        threshold: Minimum order value for delivery.
        qualified: Whether the order value reaches the threshold.
        shortage: Amount missing to reach the threshold (0 when qualified).
        suggested_additional_quantity: Extra units needed to qualify.
        minimum_quantity: Smallest quantity that qualifies on its own.
    """

    order_value: Decimal
    threshold: Decimal
    qualified: bool
    shortage: Decimal
    suggested_additional_quantity: int
    minimum_quantity: int


@dataclass(frozen=True)
class OrderLine:
    """One product line of an order, with the product data the rules need."""

    product_id: int
    name: str
    unit: str
    unit_cost: Decimal
    quantity: int
    supplier: str | None = None
    delivery_threshold: Decimal | None = None

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_cost) * self.quantity


@dataclass
class SupplierGroup:
    """Order lines for one supplier and the group's delivery status."""

    supplier: str
    threshold: Decimal
    lines: list[OrderLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal(0))

    @property
    def can_deliver(self) -> bool:
        return self.total >= self.threshold

    @property
    def difference(self) -> Decimal:
        """Surplus (positive) or shortage (negative) against the threshold."""
        return self.total - self.threshold


def _units_for(amount: Decimal, unit_cost: Decimal) -> int:
    if unit_cost <= 0 or amount <= 0:
        return 0
    return math.ceil(amount / unit_cost)


def evaluate_item(unit_cost: Decimal, quantity: int, threshold: Decimal) -> DeliveryCheck:
    """Check a single product order against its delivery threshold.

    Args:
        unit_cost: Cost per unit.
        quantity: Units requested.
        threshold: Minimum order value.

    Returns:
        DeliveryCheck with shortage and the quantities that would qualify.
    """
    unit_cost = Decimal(unit_cost)
    threshold = Decimal(threshold)
    value = unit_cost * quantity
    shortage = max(Decimal(0), threshold - value)
    qualified = value >= threshold
    return DeliveryCheck(
        order_value=value,
        threshold=threshold,
        qualified=qualified,
        shortage=shortage,
        suggested_additional_quantity=0 if qualified else _units_for(shortage, unit_cost),
        minimum_quantity=_units_for(threshold, unit_cost),
    )


def group_by_supplier(
    lines: Iterable[OrderLine],
    default_threshold: Decimal,
) -> list[SupplierGroup]:
    """Group order lines by supplier, keeping first-seen order.

    Args:
        lines: Order lines.
        default_threshold: Threshold used when the first line of a group has none.

    Returns:
        One SupplierGroup per supplier.
    """
    groups: dict[str, SupplierGroup] = {}
    for line in lines:
        name = line.supplier or UNASSIGNED_SUPPLIER
        group = groups.get(name)
        if group is None:
            group = SupplierGroup(
                supplier=name,
                threshold=Decimal(line.delivery_threshold or default_threshold),
            )
            groups[name] = group
        group.lines.append(line)
    return list(groups.values())


def threshold_tier(threshold: Decimal) -> ThresholdTier:
    """Classify a threshold: up to 500 low, up to 1000 medium, otherwise high."""
    if threshold <= 500:
        return ThresholdTier.LOW
    if threshold <= 1000:
        return ThresholdTier.MEDIUM
    return ThresholdTier.HIGH
