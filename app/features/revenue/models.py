"""Revenue ORM model: one submission per store per day."""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, CheckConstraint, Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin


class RevenueRecord(TimestampMixin, Base):
    """Daily revenue submission with itemised income and expenses.

    Attributes:
        id: Primary key.
        record_date: Business date.
        store_id: Store.
        bonus_type: weekday or holiday.
        order_count: Number of customer orders that day.
        income_items: Income by item (JSON).
        expense_items: Expenses by item (JSON).
        total_income: Sum of income items.
        total_expense: Sum of expense items.
        net_income: total_income - total_expense.
        bonus_amount: Computed bonus.
        recorded_by: Submitting employee.
    """

    __tablename__ = "revenue_record"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    record_date: Mapped[datetime.date] = mapped_column(Date, index=True)
    store_id: Mapped[int] = mapped_column(Integer, ForeignKey("store.id"), index=True)
    bonus_type: Mapped[str] = mapped_column(String(20))
    order_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    income_items: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    expense_items: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    total_income: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    total_expense: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    net_income: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    bonus_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    recorded_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("ix_revenue_record_store_date", "store_id", "record_date"),
        CheckConstraint("bonus_type IN ('weekday', 'holiday')", name="ck_revenue_valid_bonus_type"),
        CheckConstraint("total_income >= 0", name="ck_revenue_income_non_negative"),
        CheckConstraint("total_expense >= 0", name="ck_revenue_expense_non_negative"),
    )
