"""API routes for daily revenue."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.features.auth.dependencies import Client, CurrentUser, ManagementUser
from app.features.notifications.telegram import TelegramNotifier, get_notifier
from app.features.revenue.schemas import (
    BonusPreview,
    BonusPreviewRequest,
    RevenueCreate,
    RevenueListResponse,
    RevenueResponse,
)
from app.features.revenue.service import RevenueService
from app.shared.schemas import PaginationParams
from app.shared.utils import pagination_params

router = APIRouter(prefix="/revenue", tags=["revenue"])


@router.post(
    "",
    response_model=RevenueResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a day's revenue",
    description="""
Submit a store's revenue for one day.

**Income items**: `on_site_sales`, `online_orders`, `panda_orders`,
`uber_orders`, `oil_recycling`.
**Expense items**: `gas`, `utilities`, `rent`, `supplies`, `cleaning`, `others`.

**Bonus** (`bonus_type`), computed on `adjusted = total_income * 0.65`:
- `weekday`: `round((adjusted - 13000) * 0.30)` when adjusted exceeds 13000
- `holiday`: `round(adjusted * 0.38)`

Example:
```json
{
  "record_date": "2024-06-01",
  "store_id": 1,
  "bonus_type": "weekday",
  "order_count": 120,
  "income": {"on_site_sales": 20000, "uber_orders": 5000},
  "expenses": {"gas": 800}
}
```
""",
)
async def create_revenue(
    data: RevenueCreate,
    user: CurrentUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> RevenueResponse:
    """Save a revenue record."""
    return await RevenueService().create_record(db, data, user, client, notifier)


@router.post(
    "/calculate-bonus",
    response_model=BonusPreview,
    summary="Preview totals and bonus",
)
async def calculate_bonus_preview(
    request: BonusPreviewRequest,
    _user: CurrentUser,
) -> BonusPreview:
    """Compute totals and bonus without saving."""
    return RevenueService().preview(request)


@router.get(
    "",
    response_model=RevenueListResponse,
    summary="List revenue records",
    description="List revenue records with a summary over all matching records. Admin and manager only.",
)
async def list_revenue(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    store_id: int | None = Query(None, description="Filter by store"),
    start_date: date | None = Query(None, description="Earliest date (inclusive)"),
    end_date: date | None = Query(None, description="Latest date (inclusive)"),
) -> RevenueListResponse:
    """List revenue records."""
    return await RevenueService().list_records(
        db, pagination, store_id=store_id, start_date=start_date, end_date=end_date
    )


@router.get("/{record_id}", response_model=RevenueResponse, summary="Get a revenue record")
async def get_revenue(
    record_id: int,
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RevenueResponse:
    """Get one revenue record."""
    return await RevenueService().get_record(db, record_id, user)
