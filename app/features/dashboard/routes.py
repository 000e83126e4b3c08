"""API routes for the management dashboard."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.features.auth.dependencies import ManagementUser
from app.features.dashboard.schemas import DashboardStats
from app.features.dashboard.service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard statistics",
    description="""
Snapshot for admins and managers:

- `employees`: total and active accounts
- `attendance_today`: clock-ins and late arrivals for today
- `revenue_month`: income, bonus and record count since the 1st of the month
- `inventory`: active products, low/out-of-stock counts, stock value
- `maintenance`: open requests
""",
)
async def dashboard_stats(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DashboardStats:
    """Get dashboard statistics."""
    return await DashboardService().get_stats(db)
