"""Admin API routes for order-frequency anomaly checks."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.features.anomalies.schemas import AnomalyCheckResult, CheckerStatus
from app.features.anomalies.service import AnomalyService
from app.features.audit.schemas import SystemLogResponse
from app.features.auth.dependencies import ManagementUser
from app.features.notifications.telegram import TelegramNotifier, get_notifier
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import pagination_params

router = APIRouter(prefix="/admin", tags=["anomalies"])


@router.post(
    "/check-order-anomalies",
    response_model=AnomalyCheckResult,
    summary="Check all products for order anomalies",
    description="""
Run the order-frequency rules for every monitored product.

**Rules** (per product, 0 disables):
- `rare_order`: no order for more than `rare_order_days`
- `frequent_order`: more than one order within `frequent_order_days`

Each anomaly is sent to Telegram and recorded in the audit log.
""",
)
async def check_order_anomalies(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> AnomalyCheckResult:
    """Check all monitored products."""
    return await AnomalyService().check_all(db, notifier)


@router.post(
    "/check-product-anomaly/{product_id}",
    response_model=AnomalyCheckResult,
    summary="Check one product for order anomalies",
)
async def check_product_anomaly(
    product_id: int,
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> AnomalyCheckResult:
    """Check a single product."""
    return await AnomalyService().check_product(db, product_id, notifier)


@router.get(
    "/order-anomalies/history",
    response_model=PaginatedResponse[SystemLogResponse],
    summary="Recent anomaly alerts",
)
async def anomaly_history(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    days: int = Query(7, ge=1, le=365, description="Look-back window in days"),
) -> PaginatedResponse[SystemLogResponse]:
    """Anomaly alerts of the last N days."""
    return await AnomalyService().history(db, pagination, days=days)


@router.get(
    "/anomaly-checker/status",
    response_model=CheckerStatus,
    summary="Anomaly checker status",
)
async def checker_status(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CheckerStatus:
    """Monitored products, alerts in the last 24 hours and the last scheduled run."""
    return await AnomalyService().status(db)
