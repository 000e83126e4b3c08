"""Tests for the daily bonus rule."""

from decimal import Decimal

import pytest

from app.core.config import Settings
from app.features.revenue.bonus import BonusType, calculate_bonus


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.mark.parametrize(
    "total_income,expected_adjusted,expected_bonus",
    [
        (Decimal("30000"), Decimal("19500.00"), Decimal("1950")),
        (Decimal("20000"), Decimal("13000.00"), Decimal("0")),
        (Decimal("20010"), Decimal("13006.50"), Decimal("2")),
        (Decimal("0"), Decimal("0.00"), Decimal("0")),
    ],
)
def test_weekday_bonus(settings, total_income, expected_adjusted, expected_bonus):
    result = calculate_bonus(total_income, BonusType.WEEKDAY, settings)

    assert result.adjusted_income == expected_adjusted
    assert result.bonus_amount == expected_bonus


@pytest.mark.parametrize(
    "total_income,expected_bonus",
    [
        (Decimal("10000"), Decimal("2470")),
        (Decimal("30000"), Decimal("7410")),
        (Decimal("1"), Decimal("0")),
        (Decimal("0"), Decimal("0")),
    ],
)
def test_holiday_bonus(settings, total_income, expected_bonus):
    result = calculate_bonus(total_income, BonusType.HOLIDAY, settings)

    assert result.bonus_amount == expected_bonus


def test_bonus_uses_configured_rates():
    settings = Settings(
        _env_file=None, revenue_income_ratio=1.0, revenue_weekday_base=1000, revenue_weekday_rate=0.5
    )

    result = calculate_bonus(Decimal("3000"), BonusType.WEEKDAY, settings)

    assert result.bonus_amount == Decimal("1000")
