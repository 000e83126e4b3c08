"""Service-level tests for order placement under concurrency."""

import asyncio

import pytest
from sqlalchemy import func, select

from app.core.database import get_session_maker
from app.core.exceptions import BadRequestError
from app.features.auth.service import ClientInfo
from app.features.inventory.models import InventoryTransaction, Product
from app.features.orders.models import Order
from app.features.orders.schemas import OrderCreate
from app.features.orders.service import OrderService


@pytest.mark.asyncio
async def test_concurrent_orders_never_oversell(db_session, store, products, employee_user, notifier):
    """Six sessions that all saw 40 units each order 10; only four can be approved."""
    oil_id = products["oil"].id
    sessions = [get_session_maker()() for _ in range(6)]
    try:
        # Every session loads the product before any order is placed.
        for session in sessions:
            assert (await session.get(Product, oil_id)).current_stock == 40

        async def place(session):
            try:
                await OrderService().create_order(
                    session,
                    OrderCreate(product_id=oil_id, store_id=store.id, requested_quantity=10),
                    employee_user,
                    ClientInfo(),
                    notifier,
                )
            except BadRequestError as exc:
                await session.rollback()
                return exc
            return "approved"

        results = await asyncio.gather(*(place(s) for s in sessions))
    finally:
        for session in sessions:
            await session.close()

    assert results.count("approved") == 4
    rejected = [r for r in results if isinstance(r, BadRequestError)]
    assert len(rejected) == 2
    assert all(r.details["requested"] == 10 for r in rejected)

    await db_session.refresh(products["oil"])
    assert products["oil"].current_stock == 0

    approved_units = (
        await db_session.execute(select(func.sum(Order.approved_quantity)))
    ).scalar_one()
    assert approved_units == 40
    ledger = (
        await db_session.execute(
            select(InventoryTransaction.stock_after).order_by(InventoryTransaction.stock_after.desc())
        )
    ).scalars().all()
    assert ledger == [30, 20, 10, 0]


@pytest.mark.asyncio
async def test_stale_instance_cannot_overdraw(db_session, store, products, employee_user, notifier):
    """A session holding an outdated stock figure is checked against the database."""
    oil = products["oil"]
    stale = get_session_maker()()
    try:
        assert (await stale.get(Product, oil.id)).current_stock == 40

        oil.current_stock = 5
        await db_session.commit()

        with pytest.raises(BadRequestError) as exc_info:
            await OrderService().create_order(
                stale,
                OrderCreate(product_id=oil.id, store_id=store.id, requested_quantity=10),
                employee_user,
                ClientInfo(),
                notifier,
            )
        await stale.rollback()
    finally:
        await stale.close()

    assert exc_info.value.details == {"product_id": oil.id, "available": 5, "requested": 10}
    await db_session.refresh(oil)
    assert oil.current_stock == 5
