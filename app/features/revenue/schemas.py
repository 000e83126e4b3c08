"""Pydantic schemas for revenue endpoints."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.features.revenue.bonus import BonusType

Amount = Decimal


class IncomeItems(BaseModel):
    """Income by channel. Missing items count as zero."""

    on_site_sales: Amount = Field(Decimal(0), ge=0, description="Walk-in sales.")
    online_orders: Amount = Field(Decimal(0), ge=0)
    panda_orders: Amount = Field(Decimal(0), ge=0, description="Foodpanda orders.")
    uber_orders: Amount = Field(Decimal(0), ge=0, description="Uber Eats orders.")
    oil_recycling: Amount = Field(Decimal(0), ge=0, description="Used cooking oil buy-back.")

    def total(self) -> Decimal:
        return sum(self.model_dump().values(), Decimal(0))


class ExpenseItems(BaseModel):
    """Expenses by category. Missing items count as zero."""

    gas: Amount = Field(Decimal(0), ge=0)
    utilities: Amount = Field(Decimal(0), ge=0)
    rent: Amount = Field(Decimal(0), ge=0)
    supplies: Amount = Field(Decimal(0), ge=0)
    cleaning: Amount = Field(Decimal(0), ge=0)
    others: Amount = Field(Decimal(0), ge=0)

    def total(self) -> Decimal:
        return sum(self.model_dump().values(), Decimal(0))


class BonusPreviewRequest(BaseModel):
    """Totals and bonus preview without saving."""

    bonus_type: BonusType
    income: IncomeItems = Field(default_factory=IncomeItems)
    expenses: ExpenseItems = Field(default_factory=ExpenseItems)


class RevenueCreate(BonusPreviewRequest):
    """Request schema for submitting a day's revenue."""

    record_date: date
    store_id: int
    order_count: int | None = Field(None, ge=0)
    notes: str | None = Field(None, max_length=500)


class BonusPreview(BaseModel):
    """Computed totals and bonus."""

    total_income: Decimal
    total_expense: Decimal
    net_income: Decimal
    adjusted_income: Decimal = Field(..., description="Income share the bonus is computed on.")
    bonus_amount: Decimal


class RevenueResponse(BaseModel):
    """A saved revenue record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    record_date: date
    store_id: int
    bonus_type: BonusType
    order_count: int | None = None
    income_items: IncomeItems
    expense_items: ExpenseItems
    total_income: Decimal
    total_expense: Decimal
    net_income: Decimal
    bonus_amount: Decimal
    notes: str | None = None
    recorded_by: int | None = None
    created_at: datetime


class RevenueSummary(BaseModel):
    """Aggregates over the filtered records (not just the current page)."""

    total_income: Decimal
    total_expense: Decimal
    total_net: Decimal
    total_bonus: Decimal
    record_count: int


class RevenueListResponse(BaseModel):
    """Paginated revenue records with a summary."""

    items: list[RevenueResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    pages: int = Field(..., ge=0)
    summary: RevenueSummary
