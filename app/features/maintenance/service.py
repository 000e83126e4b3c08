"""Service layer for maintenance requests."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.core.logging import get_logger
from app.features.audit.service import AuditService
from app.features.auth.service import ClientInfo
from app.features.employees.models import User, UserRole
from app.features.maintenance.models import (
    CLOSED_STATUSES,
    HIGH_PRIORITY_URGENCIES,
    VALID_MAINTENANCE_TRANSITIONS,
    MaintenanceRequest,
    MaintenanceStatus,
)
from app.features.maintenance.schemas import (
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceStats,
    MaintenanceStatusUpdate,
)
from app.features.notifications.telegram import TelegramNotifier
from app.features.stores.models import Store
from app.shared.models import utcnow
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import fetch_page, paginate_response, reference_number

logger = get_logger(__name__)


class MaintenanceService:
    """Maintenance request lifecycle."""

    def __init__(self) -> None:
        """Initialize maintenance service."""
        self.settings = get_settings()
        self.audit = AuditService()

    async def _load(self, db: AsyncSession, request_id: int) -> MaintenanceRequest:
        request = await db.get(MaintenanceRequest, request_id)
        if request is None:
            raise NotFoundError(f"Maintenance request not found: {request_id}")
        return request

    async def create_request(
        self,
        db: AsyncSession,
        data: MaintenanceCreate,
        user: User,
        client: ClientInfo,
        notifier: TelegramNotifier,
    ) -> MaintenanceResponse:
        """Report a repair.

        The store defaults to the requester's primary store.

        Raises:
            NotFoundError: If the given store does not exist.
        """
        store_id = data.store_id if data.store_id is not None else user.store_id
        store = await db.get(Store, store_id) if store_id is not None else None
        if data.store_id is not None and store is None:
            raise NotFoundError(f"Store not found: {data.store_id}")

        local_today = utcnow().astimezone(self.settings.tzinfo).date()
        request = MaintenanceRequest(
            request_number=reference_number("MR", local_today),
            title=data.title,
            description=data.description,
            location=data.location,
            category=data.category,
            urgency=data.urgency.value,
            store_id=store.id if store else None,
            requested_by=user.id,
            status=MaintenanceStatus.PENDING.value,
            estimated_cost=data.estimated_cost,
        )
        db.add(request)
        await db.flush()
        await self.audit.record(
            db,
            action="create_maintenance_request",
            user_id=user.id,
            target_type="maintenance",
            target_id=request.id,
            details={
                "request_number": request.request_number,
                "title": request.title,
                "urgency": request.urgency,
            },
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info(
            "maintenance.request_created",
            request_id=request.id,
            request_number=request.request_number,
            urgency=request.urgency,
        )

        await notifier.notify_maintenance_request(
            request_number=request.request_number,
            title=request.title,
            location=request.location,
            urgency=request.urgency,
            requested_by=user.name,
            store_name=store.name if store else None,
            description=request.description,
        )
        return MaintenanceResponse.model_validate(request)

    async def get_request(
        self, db: AsyncSession, request_id: int, viewer: User
    ) -> MaintenanceResponse:
        """Get a request; staff may only read their own.

        Raises:
            NotFoundError: If the request does not exist.
            ForbiddenError: If a non-manager reads someone else's request.
        """
        request = await self._load(db, request_id)
        if not viewer.is_management and request.requested_by != viewer.id:
            raise ForbiddenError("You can only view your own maintenance requests")
        return MaintenanceResponse.model_validate(request)

    async def list_requests(
        self,
        db: AsyncSession,
        viewer: User,
        pagination: PaginationParams,
        status: MaintenanceStatus | None = None,
        store_id: int | None = None,
        requested_by: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PaginatedResponse[MaintenanceResponse]:
        """List requests, newest first.

        Staff only see their own requests; ``requested_by`` is honoured for
        admins and managers.
        """
        stmt = select(MaintenanceRequest)
        if not viewer.is_management:
            stmt = stmt.where(MaintenanceRequest.requested_by == viewer.id)
        elif requested_by is not None:
            stmt = stmt.where(MaintenanceRequest.requested_by == requested_by)
        if status is not None:
            stmt = stmt.where(MaintenanceRequest.status == status.value)
        if store_id is not None:
            stmt = stmt.where(MaintenanceRequest.store_id == store_id)
        tz = self.settings.tzinfo
        if start_date is not None:
            stmt = stmt.where(
                MaintenanceRequest.created_at >= datetime.combine(start_date, time.min, tz)
            )
        if end_date is not None:
            stmt = stmt.where(
                MaintenanceRequest.created_at <= datetime.combine(end_date, time.max, tz)
            )
        stmt = stmt.order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc())

        rows, total = await fetch_page(db, stmt, pagination)
        return paginate_response(
            [MaintenanceResponse.model_validate(r) for r in rows], total, pagination
        )

    async def update_status(
        self,
        db: AsyncSession,
        request_id: int,
        data: MaintenanceStatusUpdate,
        actor: User,
        client: ClientInfo,
        notifier: TelegramNotifier,
    ) -> MaintenanceResponse:
        """Move a request along its lifecycle.

        Args:
            db: Database session.
            request_id: Request to update.
            data: Target status and optional details.
            actor: Manager making the change.
            client: Request origin.
            notifier: Telegram notifier.

        Returns:
            The updated request.

        Raises:
            NotFoundError: If the request or the assignee does not exist.
            BadRequestError: If the transition is not allowed.
        """
        request = await self._load(db, request_id)
        current = MaintenanceStatus(request.status)
        if data.status not in VALID_MAINTENANCE_TRANSITIONS[current]:
            raise BadRequestError(
                f"Cannot change status from '{current.value}' to '{data.status.value}'",
                details={
                    "current_status": current.value,
                    "allowed": sorted(s.value for s in VALID_MAINTENANCE_TRANSITIONS[current]),
                },
            )

        if data.assigned_to is not None:
            if await db.get(User, data.assigned_to) is None:
                raise NotFoundError(f"Employee not found: {data.assigned_to}")
            request.assigned_to = data.assigned_to

        now = utcnow()
        request.status = data.status.value
        if data.status == MaintenanceStatus.IN_PROGRESS:
            request.started_at = now
        elif data.status == MaintenanceStatus.COMPLETED:
            request.actual_completion = now
        if data.estimated_completion is not None:
            request.estimated_completion = data.estimated_completion
        if data.actual_cost is not None:
            request.actual_cost = data.actual_cost
        if data.note:
            stamped = f"[{now.astimezone(self.settings.tzinfo):%Y-%m-%d %H:%M}] {data.note}"
            request.notes = f"{request.notes}\n{stamped}" if request.notes else stamped

        await self.audit.record(
            db,
            action="update_maintenance_status",
            user_id=actor.id,
            target_type="maintenance",
            target_id=request.id,
            details={
                "request_number": request.request_number,
                "old_status": current.value,
                "new_status": data.status.value,
                "note": data.note,
            },
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info(
            "maintenance.status_updated",
            request_id=request.id,
            old_status=current.value,
            new_status=data.status.value,
        )

        await notifier.notify_maintenance_status(
            request_number=request.request_number,
            title=request.title,
            old_status=current.value,
            new_status=data.status.value,
            updated_by=actor.name,
            note=data.note,
        )
        return MaintenanceResponse.model_validate(request)

    async def delete_request(
        self,
        db: AsyncSession,
        request_id: int,
        actor: User,
        client: ClientInfo,
    ) -> None:
        """Hard-delete a request; requester or admin only.

        Raises:
            NotFoundError: If the request does not exist.
            ForbiddenError: If the actor is neither the requester nor an admin.
        """
        request = await self._load(db, request_id)
        if actor.role != UserRole.ADMIN.value and request.requested_by != actor.id:
            raise ForbiddenError("Only the requester or an admin can delete a maintenance request")

        await self.audit.record(
            db,
            action="delete_maintenance_request",
            user_id=actor.id,
            target_type="maintenance",
            target_id=request.id,
            details={"request_number": request.request_number, "title": request.title},
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.delete(request)
        await db.commit()
        logger.info("maintenance.request_deleted", request_id=request_id)

    async def stats(self, db: AsyncSession, days: int = 30) -> MaintenanceStats:
        """Counts by status and open high-priority requests over the last ``days`` days."""
        since = utcnow() - timedelta(days=days)
        rows = (
            await db.execute(
                select(MaintenanceRequest.status, func.count(MaintenanceRequest.id))
                .where(MaintenanceRequest.created_at >= since)
                .group_by(MaintenanceRequest.status)
            )
        ).all()
        by_status = {s.value: 0 for s in MaintenanceStatus}
        by_status.update({status: count for status, count in rows})

        high_priority = (
            await db.execute(
                select(func.count(MaintenanceRequest.id)).where(
                    MaintenanceRequest.created_at >= since,
                    MaintenanceRequest.urgency.in_(HIGH_PRIORITY_URGENCIES),
                    MaintenanceRequest.status.not_in(CLOSED_STATUSES),
                )
            )
        ).scalar_one()

        return MaintenanceStats(
            period_days=days,
            total=sum(by_status.values()),
            by_status=by_status,
            high_priority=high_priority,
        )
