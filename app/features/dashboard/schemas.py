"""Pydantic schemas for the management dashboard."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class EmployeeCounts(BaseModel):
    """Headcount."""

    total: int
    active: int


class AttendanceToday(BaseModel):
    """Today's clock-ins (local business date)."""

    work_date: date
    checked_in: int
    late: int


class RevenueMonth(BaseModel):
    """Revenue of the current local month."""

    month_start: date
    total_income: Decimal
    total_bonus: Decimal
    record_count: int


class InventoryOverview(BaseModel):
    """Stock health of active products."""

    active_products: int
    low_stock: int = Field(..., description="Above zero but at or below min_stock.")
    out_of_stock: int
    stock_value: Decimal = Field(..., description="Sum of current_stock * unit_cost.")


class MaintenanceOverview(BaseModel):
    """Open maintenance work."""

    open: int


class DashboardStats(BaseModel):
    """Management dashboard snapshot."""

    employees: EmployeeCounts
    attendance_today: AttendanceToday
    revenue_month: RevenueMonth
    inventory: InventoryOverview
    maintenance: MaintenanceOverview
