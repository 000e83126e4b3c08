"""Aggregations for the management dashboard."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.logging import get_logger
from app.features.attendance.models import Attendance, AttendanceStatus
from app.features.dashboard.schemas import (
    AttendanceToday,
    DashboardStats,
    EmployeeCounts,
    InventoryOverview,
    MaintenanceOverview,
    RevenueMonth,
)
from app.features.employees.models import User
from app.features.inventory.models import Product
from app.features.maintenance.models import CLOSED_STATUSES, MaintenanceRequest
from app.features.revenue.models import RevenueRecord
from app.shared.models import utcnow

logger = get_logger(__name__)


class DashboardService:
    """Builds the dashboard snapshot from the feature tables."""

    def __init__(self) -> None:
        """Initialize dashboard service."""
        self.settings = get_settings()

    async def get_stats(self, db: AsyncSession) -> DashboardStats:
        """Collect headcount, attendance, revenue, stock and maintenance figures.

        Dates are the local business dates in the configured timezone.
        """
        today = utcnow().astimezone(self.settings.tzinfo).date()
        month_start = today.replace(day=1)

        total_users, active_users = (
            await db.execute(
                select(
                    func.count(User.id),
                    func.coalesce(func.sum(case((User.is_active.is_(True), 1), else_=0)), 0),
                )
            )
        ).one()

        checked_in, late = (
            await db.execute(
                select(
                    func.count(Attendance.id),
                    func.coalesce(
                        func.sum(
                            case((Attendance.status == AttendanceStatus.LATE.value, 1), else_=0)
                        ),
                        0,
                    ),
                ).where(Attendance.work_date == today)
            )
        ).one()

        income, bonus, record_count = (
            await db.execute(
                select(
                    func.coalesce(func.sum(RevenueRecord.total_income), 0),
                    func.coalesce(func.sum(RevenueRecord.bonus_amount), 0),
                    func.count(RevenueRecord.id),
                ).where(RevenueRecord.record_date >= month_start, RevenueRecord.record_date <= today)
            )
        ).one()

        active_products, low_stock, out_of_stock, stock_value = (
            await db.execute(
                select(
                    func.count(Product.id),
                    func.coalesce(
                        func.sum(
                            case(
                                (
                                    (Product.current_stock > 0)
                                    & (Product.current_stock <= Product.min_stock),
                                    1,
                                ),
                                else_=0,
                            )
                        ),
                        0,
                    ),
                    func.coalesce(
                        func.sum(case((Product.current_stock <= 0, 1), else_=0)), 0
                    ),
                    func.coalesce(func.sum(Product.current_stock * Product.unit_cost), 0),
                ).where(Product.is_active.is_(True))
            )
        ).one()

        open_maintenance = (
            await db.execute(
                select(func.count(MaintenanceRequest.id)).where(
                    MaintenanceRequest.status.not_in(CLOSED_STATUSES)
                )
            )
        ).scalar_one()

        logger.debug("dashboard.stats_computed", date=today.isoformat())

        return DashboardStats(
            employees=EmployeeCounts(total=total_users, active=int(active_users)),
            attendance_today=AttendanceToday(work_date=today, checked_in=checked_in, late=int(late)),
            revenue_month=RevenueMonth(
                month_start=month_start,
                total_income=Decimal(str(income)),
                total_bonus=Decimal(str(bonus)),
                record_count=record_count,
            ),
            inventory=InventoryOverview(
                active_products=active_products,
                low_stock=int(low_stock),
                out_of_stock=int(out_of_stock),
                stock_value=Decimal(str(stock_value)),
            ),
            maintenance=MaintenanceOverview(open=open_maintenance),
        )
