"""Daily store bonus rule.

The bonus pool is computed from an adjusted income (a fixed share of the
day's total income):

- weekday: 30% of the adjusted income above 13,000
- holiday: 38% of the adjusted income

Ratios and rates come from settings; results are whole currency units,
rounded half up.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from app.core.config import Settings
from app.shared.utils import round_half_up


class BonusType(str, Enum):
    """Which bonus scheme applies to the day."""

    WEEKDAY = "weekday"
    HOLIDAY = "holiday"


@dataclass(frozen=True)
class BonusResult:
    """Bonus computation with its intermediate value."""

    adjusted_income: Decimal
    bonus_amount: Decimal


def calculate_bonus(
    total_income: Decimal,
    bonus_type: BonusType,
    settings: Settings,
) -> BonusResult:
    """Compute the day's bonus.

    Args:
        total_income: Sum of all income items.
        bonus_type: Weekday or holiday scheme.
        settings: Source of ratio, base and rates.

    Returns:
        Adjusted income (2 dp) and bonus (whole units).
    """
    adjusted = Decimal(total_income) * Decimal(str(settings.revenue_income_ratio))

    if bonus_type == BonusType.WEEKDAY:
        base = Decimal(settings.revenue_weekday_base)
        if adjusted > base:
            bonus = round_half_up((adjusted - base) * Decimal(str(settings.revenue_weekday_rate)))
        else:
            bonus = Decimal(0)
    elif adjusted > 0:
        bonus = round_half_up(adjusted * Decimal(str(settings.revenue_holiday_rate)))
    else:
        bonus = Decimal(0)

    return BonusResult(adjusted_income=round_half_up(adjusted, 2), bonus_amount=bonus)
