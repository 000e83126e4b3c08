"""API routes for maintenance requests."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.features.auth.dependencies import Client, CurrentUser, ManagementUser
from app.features.maintenance.models import MaintenanceStatus
from app.features.maintenance.schemas import (
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceStats,
    MaintenanceStatusUpdate,
)
from app.features.maintenance.service import MaintenanceService
from app.features.notifications.telegram import TelegramNotifier, get_notifier
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import pagination_params

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post(
    "",
    response_model=MaintenanceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report a repair",
    description="""
Create a maintenance request. Any signed-in user may report.

`urgency`: low, medium, high, urgent. The store defaults to the reporter's
primary store. Management is notified on Telegram.
""",
)
async def create_request(
    data: MaintenanceCreate,
    user: CurrentUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> MaintenanceResponse:
    """Create a maintenance request."""
    return await MaintenanceService().create_request(db, data, user, client, notifier)


@router.get(
    "/stats/summary",
    response_model=MaintenanceStats,
    summary="Maintenance statistics",
)
async def maintenance_stats(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MaintenanceStats:
    """Counts over the last 30 days."""
    return await MaintenanceService().stats(db)


@router.get(
    "",
    response_model=PaginatedResponse[MaintenanceResponse],
    summary="List maintenance requests",
    description="Admins and managers see every request; other users see their own.",
)
async def list_requests(
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    request_status: MaintenanceStatus | None = Query(
        None, alias="status", description="Filter by status"
    ),
    store_id: int | None = Query(None, description="Filter by store"),
    requested_by: int | None = Query(None, description="Filter by reporter (management only)"),
    start_date: date | None = Query(None, description="Earliest creation date (inclusive)"),
    end_date: date | None = Query(None, description="Latest creation date (inclusive)"),
) -> PaginatedResponse[MaintenanceResponse]:
    """List maintenance requests."""
    return await MaintenanceService().list_requests(
        db,
        user,
        pagination,
        status=request_status,
        store_id=store_id,
        requested_by=requested_by,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/{request_id}", response_model=MaintenanceResponse, summary="Get a request")
async def get_request(
    request_id: int,
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MaintenanceResponse:
    """Get one maintenance request."""
    return await MaintenanceService().get_request(db, request_id, user)


@router.put(
    "/{request_id}/status",
    response_model=MaintenanceResponse,
    summary="Change request status",
    description="""
Move a request along its lifecycle. Admin and manager only.

**Transitions**:
- `pending` → `in_progress`, `cancelled`
- `in_progress` → `completed`, `cancelled`
- `completed`, `cancelled`: terminal (400)
""",
)
async def update_status(
    request_id: int,
    data: MaintenanceStatusUpdate,
    user: ManagementUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> MaintenanceResponse:
    """Change a request's status."""
    return await MaintenanceService().update_status(
        db, request_id, data, user, client, notifier
    )


@router.delete(
    "/{request_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a request",
    description="Permanently delete a request. Only the reporter or an admin may delete.",
)
async def delete_request(
    request_id: int,
    user: CurrentUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Delete a maintenance request."""
    await MaintenanceService().delete_request(db, request_id, user, client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
