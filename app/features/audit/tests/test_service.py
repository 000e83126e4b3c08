"""Tests for the audit service."""

import pytest
from sqlalchemy import select

from app.features.audit.models import SystemLog
from app.features.audit.service import AuditService, parse_details
from app.shared.schemas import PaginationParams


def test_parse_details_json():
    assert parse_details('{"old": 100, "new": 200}') == {"old": 100, "new": 200}


def test_parse_details_plain_text():
    assert parse_details("radius changed") == "radius changed"


def test_parse_details_none():
    assert parse_details(None) is None


@pytest.mark.asyncio
async def test_record_serializes_dict_details(db_session):
    entry = await AuditService().record(
        db_session,
        action="update_store_radius",
        user_id=1,
        target_type="store",
        target_id=7,
        details={"old_radius": 100, "new_radius": 250},
        user_agent="x" * 400,
    )
    await db_session.commit()

    stored = (await db_session.execute(select(SystemLog))).scalar_one()
    assert stored.log_id == entry.log_id
    assert len(stored.log_id) == 32
    assert stored.target_id == "7"
    assert parse_details(stored.details) == {"old_radius": 100, "new_radius": 250}
    assert len(stored.user_agent) == 255


@pytest.mark.asyncio
async def test_record_is_not_committed(db_session):
    service = AuditService()
    await service.record(db_session, action="create_product")
    await db_session.rollback()

    count = len((await db_session.execute(select(SystemLog))).scalars().all())
    assert count == 0


@pytest.mark.asyncio
async def test_list_logs_filters(db_session):
    service = AuditService()
    await service.record(db_session, action="create_product", target_type="product", target_id=1)
    await service.record(db_session, action="create_product", target_type="product", target_id=2)
    await service.record(db_session, action="user_login", user_id=5, details="from kiosk")
    await db_session.commit()

    page = await service.list_logs(db_session, PaginationParams(), action="create_product")
    assert page.total == 2
    # newest first
    assert [item.target_id for item in page.items] == ["2", "1"]

    page = await service.list_logs(db_session, PaginationParams(), target_type="product", target_id=1)
    assert page.total == 1

    page = await service.list_logs(db_session, PaginationParams(), user_id=5)
    assert page.items[0].details == "from kiosk"
