"""API routes for browsing the audit trail."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.features.audit.schemas import SystemLogResponse
from app.features.audit.service import AuditService
from app.features.auth.dependencies import AdminUser
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import pagination_params

router = APIRouter(prefix="/admin/logs", tags=["audit"])


@router.get(
    "",
    response_model=PaginatedResponse[SystemLogResponse],
    summary="List audit log entries",
    description="""
Browse the system log, newest first. Admin only.

**Filtering**:
- `action`: e.g. `user_login`, `update_store_radius`, `order_anomaly_alert`
- `target_type` / `target_id`: e.g. `product` / `12`
- `user_id`: acting user
- `since`: ISO timestamp lower bound
""",
)
async def list_logs(
    _admin: AdminUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    action: str | None = Query(None, description="Filter by action name"),
    target_type: str | None = Query(None, description="Filter by target kind"),
    target_id: str | None = Query(None, description="Filter by target id"),
    user_id: int | None = Query(None, description="Filter by acting user"),
    since: datetime | None = Query(None, description="Only entries at or after this time"),
) -> PaginatedResponse[SystemLogResponse]:
    """List audit entries with filters."""
    return await AuditService().list_logs(
        db,
        pagination,
        action=action,
        target_type=target_type,
        target_id=target_id,
        since=since,
        user_id=user_id,
    )
