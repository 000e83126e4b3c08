"""Daily revenue submissions and the store bonus rule."""

from app.features.revenue.bonus import BonusType, calculate_bonus
from app.features.revenue.models import RevenueRecord

__all__ = ["BonusType", "RevenueRecord", "calculate_bonus"]
