"""API routes for attendance (GPS clock-in)."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.features.attendance.schemas import AttendanceResponse, ClockRequest, ClockResponse
from app.features.attendance.service import AttendanceService
from app.features.auth.dependencies import CurrentUser
from app.features.notifications.telegram import TelegramNotifier, get_notifier
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import pagination_params

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post(
    "/clock",
    response_model=ClockResponse,
    summary="Clock in or out",
    description="""
Clock in or out at a store using the device's GPS position.

- First clock of the (local) day: **check-in**, marked `late` after the
  configured start time.
- Second clock: **check-out**; worked hours and overtime beyond the standard
  shift are computed.
- Third clock: **400** "attendance already completed today".

If the store has coordinates, the position must be within the store's
radius; otherwise **400** with `distance_m` and `radius_m`.
""",
)
async def clock(
    request: ClockRequest,
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> ClockResponse:
    """Toggle today's attendance."""
    return await AttendanceService().clock(db, user, request, notifier)


@router.get(
    "/today",
    response_model=AttendanceResponse | None,
    summary="Today's attendance for the caller",
)
async def today(
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AttendanceResponse | None:
    """Return today's record or null."""
    return await AttendanceService().today(db, user)


@router.get(
    "",
    response_model=PaginatedResponse[AttendanceResponse],
    summary="List attendance records",
    description="""
List attendance records, newest first.

Employees and interns only see their own records. Admins and managers see
everyone and may filter by `user_id`.
""",
)
async def list_attendance(
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    user_id: int | None = Query(None, description="Filter by employee (management only)"),
    store_id: int | None = Query(None, description="Filter by store"),
    start_date: date | None = Query(None, description="Earliest work date (inclusive)"),
    end_date: date | None = Query(None, description="Latest work date (inclusive)"),
) -> PaginatedResponse[AttendanceResponse]:
    """List attendance."""
    return await AttendanceService().list_records(
        db,
        viewer=user,
        pagination=pagination,
        user_id=user_id,
        store_id=store_id,
        start_date=start_date,
        end_date=end_date,
    )
