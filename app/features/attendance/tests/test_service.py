"""Tests for attendance rules and the clock toggle."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from app.core.exceptions import BadRequestError, NotFoundError
from app.features.attendance.schemas import ClockRequest
from app.features.attendance.service import AttendanceService, is_late, worked_hours

TAIPEI = ZoneInfo("Asia/Taipei")


# =============================================================================
# Pure rules
# =============================================================================


def test_worked_hours_without_overtime():
    start = datetime(2024, 1, 15, 1, 0, tzinfo=UTC)
    hours, overtime = worked_hours(start, start + timedelta(hours=7, minutes=30), 8.0)

    assert hours == Decimal("7.50")
    assert overtime == Decimal("0.00")


def test_worked_hours_with_overtime():
    start = datetime(2024, 1, 15, 1, 0, tzinfo=UTC)
    hours, overtime = worked_hours(start, start + timedelta(hours=9, minutes=20), 8.0)

    assert hours == Decimal("9.33")
    assert overtime == Decimal("1.33")


@pytest.mark.parametrize(
    "local_time,grace,expected",
    [
        ((8, 59), 0, False),
        ((9, 0), 0, False),
        ((9, 1), 0, True),
        ((9, 4), 5, False),
        ((9, 6), 5, True),
    ],
)
def test_is_late(local_time, grace, expected):
    check_in = datetime(2024, 1, 15, *local_time, tzinfo=TAIPEI)
    assert is_late(check_in, "09:00", grace) is expected


# =============================================================================
# Clock toggle
# =============================================================================


def at_store(store, **kwargs) -> ClockRequest:
    return ClockRequest(
        store_id=store.id, latitude=store.latitude, longitude=store.longitude, **kwargs
    )


@pytest.mark.asyncio
async def test_clock_in_then_out_then_rejected(db_session, employee_user, store, notifier):
    service = AttendanceService()
    morning = datetime(2024, 1, 15, 0, 45, tzinfo=UTC)  # 08:45 Taipei

    first = await service.clock(db_session, employee_user, at_store(store), notifier, now=morning)
    assert first.action == "check_in"
    assert first.record.status == "present"
    assert first.record.work_date.isoformat() == "2024-01-15"
    assert first.distance_m == 0.0

    evening = morning + timedelta(hours=9, minutes=30)
    second = await service.clock(
        db_session, employee_user, at_store(store, notes="Closed till"), notifier, now=evening
    )
    assert second.action == "check_out"
    assert second.record.work_hours == Decimal("9.50")
    assert second.record.overtime_hours == Decimal("1.50")
    assert second.record.notes == "Closed till"

    with pytest.raises(BadRequestError, match="already completed"):
        await service.clock(
            db_session, employee_user, at_store(store), notifier, now=evening + timedelta(hours=1)
        )

    assert notifier.notify_attendance.await_count == 2
    kwargs = notifier.notify_attendance.await_args_list[1].kwargs
    assert kwargs["action"] == "check_out"
    assert kwargs["work_hours"] == 9.5


@pytest.mark.asyncio
async def test_clock_in_late(db_session, employee_user, store, notifier):
    late_morning = datetime(2024, 1, 15, 1, 30, tzinfo=UTC)  # 09:30 Taipei

    result = await AttendanceService().clock(
        db_session, employee_user, at_store(store), notifier, now=late_morning
    )

    assert result.record.status == "late"
    assert result.message == "Checked in (late)"


@pytest.mark.asyncio
async def test_work_date_uses_local_day(db_session, employee_user, store, notifier):
    # 17:00 UTC on the 14th is already 01:00 on the 15th in Taipei
    result = await AttendanceService().clock(
        db_session,
        employee_user,
        at_store(store),
        notifier,
        now=datetime(2024, 1, 14, 17, 0, tzinfo=UTC),
    )

    assert result.record.work_date.isoformat() == "2024-01-15"


@pytest.mark.asyncio
async def test_clock_outside_geofence(db_session, employee_user, store, notifier):
    # ~556 m north of the store
    request = ClockRequest(
        store_id=store.id, latitude=store.latitude + 0.005, longitude=store.longitude
    )

    with pytest.raises(BadRequestError) as exc_info:
        await AttendanceService().clock(db_session, employee_user, request, notifier)

    assert exc_info.value.details["radius_m"] == 100
    assert exc_info.value.details["distance_m"] > 500
    notifier.notify_attendance.assert_not_awaited()


@pytest.mark.asyncio
async def test_store_without_coordinates_skips_geofence(
    db_session, employee_user, other_store, notifier
):
    request = ClockRequest(store_id=other_store.id, latitude=0.0, longitude=0.0)

    result = await AttendanceService().clock(db_session, employee_user, request, notifier)

    assert result.action == "check_in"
    assert result.distance_m is None


@pytest.mark.asyncio
async def test_clock_unknown_store(db_session, employee_user, notifier):
    request = ClockRequest(store_id=9999, latitude=25.0478, longitude=121.517)

    with pytest.raises(NotFoundError):
        await AttendanceService().clock(db_session, employee_user, request, notifier)
