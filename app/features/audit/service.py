"""Service layer for the audit trail.

Every mutating business operation records one SystemLog row in the same
transaction as the change it describes.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.features.audit.models import SystemLog
from app.features.audit.schemas import SystemLogResponse
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import fetch_page, paginate_response

logger = get_logger(__name__)


def parse_details(details: str | None) -> Any:
    """Decode JSON details, falling back to the raw text."""
    if details is None:
        return None
    try:
        return json.loads(details)
    except ValueError:
        return details


class AuditService:
    """Records and queries system log entries."""

    async def record(
        self,
        db: AsyncSession,
        action: str,
        user_id: int | None = None,
        target_type: str | None = None,
        target_id: int | str | None = None,
        details: str | dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SystemLog:
        """Add an audit entry to the session.

        The entry is flushed but not committed; it commits together with the
        caller's unit of work.

        Args:
            db: Database session.
            action: Action name.
            user_id: Acting user.
            target_type: Kind of target.
            target_id: Target identifier.
            details: Free text, or a dict stored as JSON.
            ip_address: Client address.
            user_agent: Client user agent.

        Returns:
            The pending SystemLog row.
        """
        if isinstance(details, dict):
            details = json.dumps(details, ensure_ascii=False, default=str)

        entry = SystemLog(
            log_id=uuid.uuid4().hex,
            user_id=user_id,
            action=action,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent[:255] if user_agent else None,
        )
        db.add(entry)
        await db.flush()

        logger.debug(
            "audit.entry_recorded",
            action=action,
            target_type=target_type,
            target_id=entry.target_id,
        )
        return entry

    def build_query(
        self,
        action: str | None = None,
        target_type: str | None = None,
        target_id: int | str | None = None,
        since: datetime | None = None,
        user_id: int | None = None,
    ) -> Any:
        """Filtered select over system logs, newest first."""
        stmt = select(SystemLog)
        if action is not None:
            stmt = stmt.where(SystemLog.action == action)
        if target_type is not None:
            stmt = stmt.where(SystemLog.target_type == target_type)
        if target_id is not None:
            stmt = stmt.where(SystemLog.target_id == str(target_id))
        if since is not None:
            stmt = stmt.where(SystemLog.created_at >= since)
        if user_id is not None:
            stmt = stmt.where(SystemLog.user_id == user_id)
        return stmt.order_by(SystemLog.created_at.desc(), SystemLog.id.desc())

    async def list_logs(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        action: str | None = None,
        target_type: str | None = None,
        target_id: int | str | None = None,
        since: datetime | None = None,
        user_id: int | None = None,
    ) -> PaginatedResponse[SystemLogResponse]:
        """List audit entries with filters and pagination.

        Args:
            db: Database session.
            pagination: Page to return.
            action: Filter by action name.
            target_type: Filter by target kind.
            target_id: Filter by target identifier.
            since: Only entries at or after this time.
            user_id: Filter by acting user.

        Returns:
            Paginated audit entries with parsed details.
        """
        stmt = self.build_query(
            action=action,
            target_type=target_type,
            target_id=target_id,
            since=since,
            user_id=user_id,
        )
        rows, total = await fetch_page(db, stmt, pagination)
        return paginate_response(
            [self.to_response(row) for row in rows], total, pagination
        )

    @staticmethod
    def to_response(entry: SystemLog) -> SystemLogResponse:
        return SystemLogResponse(
            log_id=entry.log_id,
            user_id=entry.user_id,
            action=entry.action,
            target_type=entry.target_type,
            target_id=entry.target_id,
            details=parse_details(entry.details),
            ip_address=entry.ip_address,
            created_at=entry.created_at,
        )
