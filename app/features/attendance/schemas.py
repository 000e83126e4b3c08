"""Pydantic schemas for attendance endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.features.attendance.models import AttendanceStatus


class ClockRequest(BaseModel):
    """GPS clock-in/clock-out request."""

    store_id: int = Field(..., description="Store the employee is at.")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    notes: str | None = Field(None, max_length=500)


class AttendanceResponse(BaseModel):
    """One attendance record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    store_id: int
    work_date: date
    check_in_at: datetime
    check_out_at: datetime | None = None
    check_in_distance_m: float | None = None
    status: AttendanceStatus
    work_hours: Decimal | None = None
    overtime_hours: Decimal | None = None
    notes: str | None = None


class ClockResponse(BaseModel):
    """Outcome of a clock request."""

    action: Literal["check_in", "check_out"]
    message: str
    distance_m: float | None = Field(
        None, description="Distance from the store; null when the store has no coordinates."
    )
    record: AttendanceResponse
