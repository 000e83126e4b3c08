"""Attendance ORM model: one row per employee per work day."""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin, UTCDateTime


class AttendanceStatus(str, Enum):
    """Check-in punctuality."""

    PRESENT = "present"
    LATE = "late"


class Attendance(TimestampMixin, Base):
    """Daily attendance record.

    The first clock of the day creates the row (check-in); the second sets
    the check-out and worked hours. ``work_date`` is the local business date.

    Attributes:
        id: Primary key.
        user_id: Employee.
        store_id: Store clocked in at.
        work_date: Local business date.
        check_in_at: Check-in time (UTC).
        check_out_at: Check-out time (UTC), null while on shift.
        check_in_distance_m: Distance from the store at check-in.
        status: present or late.
        work_hours: Hours between check-in and check-out.
        overtime_hours: Hours beyond the standard day.
    """

    __tablename__ = "attendance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="CASCADE"), index=True
    )
    store_id: Mapped[int] = mapped_column(Integer, ForeignKey("store.id"), index=True)
    work_date: Mapped[datetime.date] = mapped_column(Date, index=True)

    check_in_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime())
    check_in_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_in_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_in_distance_m: Mapped[float | None] = mapped_column(Float, nullable=True)

    check_out_at: Mapped[datetime.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    check_out_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_out_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=AttendanceStatus.PRESENT.value)
    work_hours: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    overtime_hours: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "work_date", name="uq_attendance_user_day"),
        CheckConstraint("status IN ('present', 'late')", name="ck_attendance_valid_status"),
        CheckConstraint(
            "check_out_at IS NULL OR check_out_at >= check_in_at",
            name="ck_attendance_checkout_after_checkin",
        ),
    )
