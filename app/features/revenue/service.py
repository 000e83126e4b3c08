"""Service layer for daily revenue records."""

from __future__ import annotations

import math
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.logging import get_logger
from app.features.audit.service import AuditService
from app.features.auth.service import ClientInfo
from app.features.employees.models import User
from app.features.notifications.telegram import TelegramNotifier
from app.features.revenue.bonus import calculate_bonus
from app.features.revenue.models import RevenueRecord
from app.features.revenue.schemas import (
    BonusPreview,
    BonusPreviewRequest,
    RevenueCreate,
    RevenueListResponse,
    RevenueResponse,
    RevenueSummary,
)
from app.features.stores.models import Store
from app.shared.schemas import PaginationParams
from app.shared.utils import fetch_page

logger = get_logger(__name__)


class RevenueService:
    """Revenue submission, listing and bonus preview."""

    def __init__(self) -> None:
        """Initialize revenue service."""
        self.settings = get_settings()
        self.audit = AuditService()

    def preview(self, request: BonusPreviewRequest) -> BonusPreview:
        """Compute totals and bonus without saving anything."""
        total_income = request.income.total()
        total_expense = request.expenses.total()
        result = calculate_bonus(total_income, request.bonus_type, self.settings)
        return BonusPreview(
            total_income=total_income,
            total_expense=total_expense,
            net_income=total_income - total_expense,
            adjusted_income=result.adjusted_income,
            bonus_amount=result.bonus_amount,
        )

    async def create_record(
        self,
        db: AsyncSession,
        data: RevenueCreate,
        user: User,
        client: ClientInfo,
        notifier: TelegramNotifier,
    ) -> RevenueResponse:
        """Save a day's revenue with computed totals and bonus.

        Args:
            db: Database session.
            data: Revenue submission.
            user: Submitting employee.
            client: Request origin.
            notifier: Telegram notifier.

        Returns:
            The saved record.

        Raises:
            NotFoundError: If the store does not exist.
        """
        store = await db.get(Store, data.store_id)
        if store is None:
            raise NotFoundError(f"Store not found: {data.store_id}")

        preview = self.preview(data)
        record = RevenueRecord(
            record_date=data.record_date,
            store_id=store.id,
            bonus_type=data.bonus_type.value,
            order_count=data.order_count,
            income_items={k: str(v) for k, v in data.income.model_dump().items()},
            expense_items={k: str(v) for k, v in data.expenses.model_dump().items()},
            total_income=preview.total_income,
            total_expense=preview.total_expense,
            net_income=preview.net_income,
            bonus_amount=preview.bonus_amount,
            notes=data.notes,
            recorded_by=user.id,
        )
        db.add(record)
        await db.flush()
        await self.audit.record(
            db,
            action="create_revenue_record",
            user_id=user.id,
            target_type="revenue",
            target_id=record.id,
            details={
                "store_name": store.name,
                "record_date": data.record_date.isoformat(),
                "total_income": str(preview.total_income),
                "bonus_amount": str(preview.bonus_amount),
            },
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info(
            "revenue.record_created",
            record_id=record.id,
            store_id=store.id,
            total_income=str(preview.total_income),
            bonus_amount=str(preview.bonus_amount),
        )

        await notifier.notify_revenue(
            store_name=store.name,
            record_date=data.record_date.isoformat(),
            recorded_by=user.name,
            bonus_type=data.bonus_type.value,
            income=data.income.model_dump(),
            expenses=data.expenses.model_dump(),
            total_income=preview.total_income,
            total_expense=preview.total_expense,
            bonus_amount=preview.bonus_amount,
            order_count=data.order_count,
            notes=data.notes,
        )
        return RevenueResponse.model_validate(record)

    async def get_record(self, db: AsyncSession, record_id: int, viewer: User) -> RevenueResponse:
        """Get a record; staff may only read their own submissions.

        Raises:
            NotFoundError: If the record does not exist.
            ForbiddenError: If a non-manager reads someone else's record.
        """
        record = await db.get(RevenueRecord, record_id)
        if record is None:
            raise NotFoundError(f"Revenue record not found: {record_id}")
        if not viewer.is_management and record.recorded_by != viewer.id:
            raise ForbiddenError("You can only view revenue records you submitted")
        return RevenueResponse.model_validate(record)

    async def list_records(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        store_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> RevenueListResponse:
        """List records newest first, with a summary over the whole filtered set.

        Args:
            db: Database session.
            pagination: Page to return.
            store_id: Filter by store.
            start_date: Earliest record date (inclusive).
            end_date: Latest record date (inclusive).

        Returns:
            Paginated records plus totals.
        """
        conditions = []
        if store_id is not None:
            conditions.append(RevenueRecord.store_id == store_id)
        if start_date is not None:
            conditions.append(RevenueRecord.record_date >= start_date)
        if end_date is not None:
            conditions.append(RevenueRecord.record_date <= end_date)

        stmt = (
            select(RevenueRecord)
            .where(*conditions)
            .order_by(RevenueRecord.record_date.desc(), RevenueRecord.id.desc())
        )
        rows, total = await fetch_page(db, stmt, pagination)

        sums = (
            await db.execute(
                select(
                    func.coalesce(func.sum(RevenueRecord.total_income), 0),
                    func.coalesce(func.sum(RevenueRecord.total_expense), 0),
                    func.coalesce(func.sum(RevenueRecord.net_income), 0),
                    func.coalesce(func.sum(RevenueRecord.bonus_amount), 0),
                ).where(*conditions)
            )
        ).one()

        return RevenueListResponse(
            items=[RevenueResponse.model_validate(r) for r in rows],
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            pages=math.ceil(total / pagination.page_size) if total > 0 else 0,
            summary=RevenueSummary(
                total_income=Decimal(str(sums[0])),
                total_expense=Decimal(str(sums[1])),
                total_net=Decimal(str(sums[2])),
                total_bonus=Decimal(str(sums[3])),
                record_count=total,
            ),
        )
