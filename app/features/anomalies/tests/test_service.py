"""Tests for the anomaly service against the database."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.database import get_session_maker
from app.core.exceptions import NotFoundError
from app.features.anomalies.rules import ALL_STORES
from app.features.anomalies.service import ALERT_ACTION, SCHEDULED_ACTION, AnomalyService
from app.features.audit.models import SystemLog
from app.features.orders.models import Order
from app.shared.models import utcnow
from app.shared.schemas import PaginationParams


@pytest.fixture
async def place_order(db_session, store, employee_user):
    """Insert an approved order placed ``hours_ago`` hours before now."""
    counter = iter(range(1, 1000))

    async def _place(product, hours_ago: float, quantity: int = 2, status: str = "approved"):
        order = Order(
            order_number=f"ORD-TEST-{next(counter)}",
            product_id=product.id,
            store_id=store.id,
            requested_quantity=quantity,
            approved_quantity=quantity,
            unit_cost=product.unit_cost,
            total_cost=Decimal(product.unit_cost) * quantity,
            supplier=product.supplier,
            status=status,
            requested_by=employee_user.id,
            requested_at=utcnow() - timedelta(hours=hours_ago),
        )
        db_session.add(order)
        await db_session.commit()
        return order

    return _place


@pytest.mark.asyncio
async def test_check_all_flags_never_ordered_products(db_session, products, notifier):
    result = await AnomalyService().check_all(
        db_session, notifier, now=utcnow() + timedelta(days=10)
    )

    assert result.success is True
    assert result.anomalies_found == 2
    assert {a.product_name for a in result.anomalies} == {"Frying oil", "Chicken wings"}
    assert set(result.grouped) == {ALL_STORES}
    assert len(result.grouped[ALL_STORES]["rare_order"]) == 2
    assert notifier.notify_order_frequency.await_count == 2
    assert notifier.notify_order_frequency.await_args.kwargs["alert_type"] == "too_rare"

    alerts = (
        await db_session.execute(select(SystemLog).where(SystemLog.action == ALERT_ACTION))
    ).scalars().all()
    assert len(alerts) == 2


@pytest.mark.asyncio
async def test_check_all_quiet_for_new_catalog(db_session, products, notifier):
    result = await AnomalyService().check_all(db_session, notifier)

    assert result.anomalies_found == 0
    notifier.notify_order_frequency.assert_not_awaited()


@pytest.mark.asyncio
async def test_check_product_flags_frequent_orders(db_session, products, place_order, notifier):
    oil = products["oil"]
    await place_order(oil, hours_ago=5, quantity=3)
    await place_order(oil, hours_ago=2, quantity=2)

    result = await AnomalyService().check_product(db_session, oil.id, notifier)

    assert result.anomalies_found == 1
    anomaly = result.anomalies[0]
    assert anomaly.type.value == "frequent_order"
    assert anomaly.store_name == "Taipei Main"
    assert anomaly.recent_orders_count == 2
    assert anomaly.total_quantity == 5
    kwargs = notifier.notify_order_frequency.await_args.kwargs
    assert kwargs["alert_type"] == "too_frequent"
    assert kwargs["store_name"] == "Taipei Main"


@pytest.mark.asyncio
async def test_cancelled_orders_are_ignored(db_session, products, place_order, notifier):
    oil = products["oil"]
    await place_order(oil, hours_ago=5, status="cancelled")
    await place_order(oil, hours_ago=2)

    result = await AnomalyService().check_product(db_session, oil.id, notifier)

    assert result.anomalies_found == 0


@pytest.mark.asyncio
async def test_check_product_flags_stale_orders(db_session, products, place_order, notifier):
    wings = products["wings"]
    await place_order(wings, hours_ago=24 * 9 - 1)

    result = await AnomalyService().check_product(db_session, wings.id, notifier)

    assert result.anomalies_found == 1
    assert result.anomalies[0].type.value == "rare_order"
    assert result.anomalies[0].anomaly_days == 9


@pytest.mark.asyncio
async def test_check_product_not_found(db_session, notifier):
    with pytest.raises(NotFoundError):
        await AnomalyService().check_product(db_session, 9999, notifier)


@pytest.mark.asyncio
async def test_background_check_swallows_missing_product(notifier):
    await AnomalyService().check_product_in_background(9999, notifier)

    notifier.notify_order_frequency.assert_not_awaited()


@pytest.mark.asyncio
async def test_run_scheduled_check_records_run(db_session, products, place_order, notifier):
    oil = products["oil"]
    await place_order(oil, hours_ago=3)
    await place_order(oil, hours_ago=1)

    result = await AnomalyService().run_scheduled_check(
        get_session_maker(), notifier, check_type="manual"
    )

    assert result.success is True
    assert result.anomalies_found == 1

    status = await AnomalyService().status(db_session)
    assert status.monitoring_products == 2
    assert status.recent_anomalies_24h == 1
    assert status.last_scheduled_check["check_type"] == "manual"
    assert status.last_scheduled_check["success"] is True
    assert status.last_scheduled_check["anomalies_found"] == 1
    assert status.last_scheduled_check_at is not None

    runs = (
        await db_session.execute(select(SystemLog).where(SystemLog.action == SCHEDULED_ACTION))
    ).scalars().all()
    assert len(runs) == 1


@pytest.mark.asyncio
async def test_status_without_runs(db_session, products):
    status = await AnomalyService().status(db_session)

    assert status.monitoring_products == 2
    assert status.recent_anomalies_24h == 0
    assert status.last_scheduled_check is None


@pytest.mark.asyncio
async def test_history_lists_alerts(db_session, products, notifier):
    await AnomalyService().check_all(db_session, notifier, now=utcnow() + timedelta(days=10))

    page = await AnomalyService().history(db_session, PaginationParams(), days=7)

    assert page.total == 2
    assert all(entry.action == ALERT_ACTION for entry in page.items)
    assert all("never been ordered" in entry.details for entry in page.items)
