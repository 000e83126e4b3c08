"""Service layer for GPS clock-in/clock-out.

A single clock endpoint toggles the day's state:
no record -> check-in, open record -> check-out, closed record -> rejected.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.logging import get_logger
from app.features.attendance.models import Attendance, AttendanceStatus
from app.features.attendance.schemas import AttendanceResponse, ClockRequest, ClockResponse
from app.features.employees.models import User
from app.features.notifications.telegram import TelegramNotifier
from app.features.stores.geo import haversine_m
from app.features.stores.models import Store
from app.shared.models import utcnow
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import fetch_page, paginate_response, round_half_up

logger = get_logger(__name__)


def worked_hours(
    check_in: datetime,
    check_out: datetime,
    standard_hours: float,
) -> tuple[Decimal, Decimal]:
    """Hours worked and overtime, both rounded to 2 decimals.

    Args:
        check_in: Check-in time.
        check_out: Check-out time.
        standard_hours: Length of a normal shift.

    Returns:
        Tuple of (work_hours, overtime_hours).
    """
    hours = (check_out - check_in).total_seconds() / 3600
    overtime = max(0.0, hours - standard_hours)
    return round_half_up(hours, 2), round_half_up(overtime, 2)


def is_late(local_check_in: datetime, work_start: str, grace_minutes: int) -> bool:
    """Whether a local check-in time is after the start of the working day plus grace."""
    hour, minute = (int(part) for part in work_start.split(":"))
    start = datetime.combine(
        local_check_in.date(), time(hour, minute), tzinfo=local_check_in.tzinfo
    ) + timedelta(minutes=grace_minutes)
    return local_check_in > start


class AttendanceService:
    """Clock-in/out and attendance history."""

    def __init__(self) -> None:
        """Initialize attendance service."""
        self.settings = get_settings()

    async def _today_record(self, db: AsyncSession, user_id: int, work_date: date) -> Attendance | None:
        stmt = select(Attendance).where(
            Attendance.user_id == user_id, Attendance.work_date == work_date
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    async def clock(
        self,
        db: AsyncSession,
        user: User,
        request: ClockRequest,
        notifier: TelegramNotifier,
        now: datetime | None = None,
    ) -> ClockResponse:
        """Check in or out depending on today's record.

        Args:
            db: Database session.
            user: Employee clocking.
            request: Store and GPS position.
            notifier: Telegram notifier.
            now: Override of the current time (UTC).

        Returns:
            The action taken and the updated record.

        Raises:
            NotFoundError: If the store does not exist or is inactive.
            BadRequestError: If the position is outside the store radius, or
                the day is already complete.
        """
        now = now or utcnow()
        local_now = now.astimezone(self.settings.tzinfo)

        store = await db.get(Store, request.store_id)
        if store is None or not store.is_active:
            raise NotFoundError(f"Store not found: {request.store_id}")

        distance: float | None = None
        if store.latitude is not None and store.longitude is not None:
            distance = round(
                haversine_m(request.latitude, request.longitude, store.latitude, store.longitude),
                1,
            )
            if distance > store.radius_m:
                logger.warning(
                    "attendance.outside_geofence",
                    store_id=store.id,
                    distance_m=distance,
                    radius_m=store.radius_m,
                )
                raise BadRequestError(
                    f"You are {distance:.0f} m from {store.name}; "
                    f"clock-in is allowed within {store.radius_m} m",
                    details={"distance_m": distance, "radius_m": store.radius_m},
                )

        record = await self._today_record(db, user.id, local_now.date())

        if record is None:
            late = is_late(
                local_now,
                self.settings.attendance_work_start,
                self.settings.attendance_late_grace_minutes,
            )
            record = Attendance(
                user_id=user.id,
                store_id=store.id,
                work_date=local_now.date(),
                check_in_at=now,
                check_in_latitude=request.latitude,
                check_in_longitude=request.longitude,
                check_in_distance_m=distance,
                status=(AttendanceStatus.LATE if late else AttendanceStatus.PRESENT).value,
                notes=request.notes,
            )
            db.add(record)
            action = "check_in"
            message = "Checked in" + (" (late)" if late else "")
        elif record.check_out_at is None:
            record.check_out_at = now
            record.check_out_latitude = request.latitude
            record.check_out_longitude = request.longitude
            record.work_hours, record.overtime_hours = worked_hours(
                record.check_in_at, now, self.settings.attendance_standard_hours
            )
            if request.notes:
                record.notes = f"{record.notes}\n{request.notes}" if record.notes else request.notes
            action = "check_out"
            message = f"Checked out after {record.work_hours} hours"
        else:
            raise BadRequestError(
                "Attendance already completed today",
                details={"work_date": record.work_date.isoformat()},
            )

        await db.commit()
        logger.info(
            "attendance.clocked",
            action=action,
            store_id=store.id,
            distance_m=distance,
            status=record.status,
        )

        await notifier.notify_attendance(
            name=user.name,
            store_name=store.name,
            action=action,
            at=local_now,
            status=record.status if action == "check_in" else None,
            distance_m=distance,
            work_hours=float(record.work_hours) if record.work_hours is not None else None,
        )

        return ClockResponse(
            action=action,
            message=message,
            distance_m=distance,
            record=AttendanceResponse.model_validate(record),
        )

    async def today(self, db: AsyncSession, user: User) -> AttendanceResponse | None:
        """The caller's record for the current local day, if any."""
        local_today = utcnow().astimezone(self.settings.tzinfo).date()
        record = await self._today_record(db, user.id, local_today)
        return AttendanceResponse.model_validate(record) if record else None

    async def list_records(
        self,
        db: AsyncSession,
        viewer: User,
        pagination: PaginationParams,
        user_id: int | None = None,
        store_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PaginatedResponse[AttendanceResponse]:
        """List attendance records, newest day first.

        Staff only ever see their own records; the ``user_id`` filter is
        honoured for admins and managers only.

        Args:
            db: Database session.
            viewer: Requesting user.
            pagination: Page to return.
            user_id: Filter by employee (management only).
            store_id: Filter by store.
            start_date: Earliest work date (inclusive).
            end_date: Latest work date (inclusive).

        Returns:
            Paginated attendance records.
        """
        stmt = select(Attendance)
        if not viewer.is_management:
            stmt = stmt.where(Attendance.user_id == viewer.id)
        elif user_id is not None:
            stmt = stmt.where(Attendance.user_id == user_id)
        if store_id is not None:
            stmt = stmt.where(Attendance.store_id == store_id)
        if start_date is not None:
            stmt = stmt.where(Attendance.work_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Attendance.work_date <= end_date)
        stmt = stmt.order_by(Attendance.work_date.desc(), Attendance.check_in_at.desc())

        rows, total = await fetch_page(db, stmt, pagination)
        return paginate_response(
            [AttendanceResponse.model_validate(r) for r in rows], total, pagination
        )
