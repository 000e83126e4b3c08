"""Tests for order endpoints."""

import pytest
from sqlalchemy import select

from app.features.audit.models import SystemLog
from app.features.inventory.models import InventoryTransaction
from app.features.orders.models import Order

# =============================================================================
# Single orders
# =============================================================================


@pytest.mark.asyncio
async def test_create_order_success(client, employee_headers, store, products, notifier, db_session):
    oil = products["oil"]

    response = await client.post(
        "/orders",
        json={"product_id": oil.id, "store_id": store.id, "requested_quantity": 2},
        headers=employee_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["order_number"].startswith("ORD-")
    assert data["remaining_stock"] == 38
    assert float(data["total_cost"]) == 1700
    assert data["delivery_qualified"] is True
    info = data["delivery_info"]
    assert info["supplier"] == "Golden Oil"
    assert float(info["surplus"]) == 200
    assert info["tier"] == "high"

    order = (await db_session.execute(select(Order))).scalar_one()
    assert order.status == "approved"
    assert order.approved_quantity == 2

    transaction = (await db_session.execute(select(InventoryTransaction))).scalar_one()
    assert transaction.transaction_type == "outbound"
    assert transaction.quantity == -2
    assert transaction.reference_no == data["order_number"]

    audit = (
        await db_session.execute(select(SystemLog).where(SystemLog.action == "create_order"))
    ).scalar_one()
    assert audit.target_id == str(order.id)

    notifier.notify_order.assert_awaited_once()
    kwargs = notifier.notify_order.await_args.kwargs
    assert kwargs["items_by_supplier"] == {
        "Golden Oil": [{"name": "Frying oil", "quantity": 2, "unit": "tin"}]
    }


@pytest.mark.asyncio
async def test_create_order_below_threshold(client, employee_headers, store, products, db_session):
    oil = products["oil"]

    response = await client.post(
        "/orders",
        json={"product_id": oil.id, "store_id": store.id, "requested_quantity": 1},
        headers=employee_headers,
    )

    assert response.status_code == 400
    data = response.json()
    assert data["current_amount"] == 850
    assert data["required_amount"] == 1500
    assert data["shortage"] == 650
    assert data["suggested_additional_quantity"] == 1

    await db_session.refresh(oil)
    assert oil.current_stock == 40
    assert (await db_session.execute(select(Order))).first() is None


@pytest.mark.asyncio
async def test_create_order_insufficient_stock(client, employee_headers, store, products):
    oil = products["oil"]

    response = await client.post(
        "/orders",
        json={"product_id": oil.id, "store_id": store.id, "requested_quantity": 41},
        headers=employee_headers,
    )

    assert response.status_code == 400
    data = response.json()
    assert data["available"] == 40
    assert data["requested"] == 41


@pytest.mark.asyncio
async def test_create_order_inactive_product(client, employee_headers, store, products, db_session):
    oil = products["oil"]
    oil.is_active = False
    await db_session.commit()

    response = await client.post(
        "/orders",
        json={"product_id": oil.id, "store_id": store.id, "requested_quantity": 2},
        headers=employee_headers,
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_order_unknown_store(client, employee_headers, products):
    response = await client.post(
        "/orders",
        json={"product_id": products["oil"].id, "store_id": 9999, "requested_quantity": 2},
        headers=employee_headers,
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_order_zero_quantity_rejected(client, employee_headers, store, products):
    response = await client.post(
        "/orders",
        json={"product_id": products["oil"].id, "store_id": store.id, "requested_quantity": 0},
        headers=employee_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_order_sends_low_stock_alert(
    client, employee_headers, store, products, notifier
):
    oil = products["oil"]

    response = await client.post(
        "/orders",
        json={"product_id": oil.id, "store_id": store.id, "requested_quantity": 34},
        headers=employee_headers,
    )

    assert response.status_code == 201
    assert response.json()["remaining_stock"] == 6
    notifier.notify_inventory_alert.assert_awaited_once()


# =============================================================================
# Batch orders
# =============================================================================


@pytest.mark.asyncio
async def test_batch_order_success(client, employee_headers, store, products, notifier, db_session):
    response = await client.post(
        "/orders/batch",
        json={
            "store_id": store.id,
            "items": [
                {"product_id": products["wings"].id, "quantity": 2},
                {"product_id": products["oil"].id, "quantity": 2},
                {"product_id": products["breast"].id, "quantity": 2},
            ],
            "delivery_date": "2024-06-03",
        },
        headers=employee_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["total_items"] == 3
    assert float(data["total_cost"]) == 4020
    base = data["order_number"]
    assert {o["order_number"] for o in data["orders"]} == {
        f"{base}-{products[key].id}" for key in ("wings", "oil", "breast")
    }
    summary = {s["supplier"]: s for s in data["supplier_summary"]}
    assert list(summary) == ["Fresh Farm", "Golden Oil"]
    assert float(summary["Fresh Farm"]["surplus"]) == 320
    assert float(summary["Golden Oil"]["surplus"]) == 200

    await db_session.refresh(products["wings"])
    assert products["wings"].current_stock == 58

    audit = (
        await db_session.execute(
            select(SystemLog).where(SystemLog.action == "create_batch_order")
        )
    ).scalar_one()
    assert audit.target_id == base

    notifier.notify_order.assert_awaited_once()
    grouped = notifier.notify_order.await_args.kwargs["items_by_supplier"]
    assert [i["name"] for i in grouped["Fresh Farm"]] == ["Chicken wings", "Chicken breast"]


@pytest.mark.asyncio
async def test_batch_order_rejected_when_a_supplier_is_short(
    client, employee_headers, store, products, notifier, db_session
):
    response = await client.post(
        "/orders/batch",
        json={
            "store_id": store.id,
            "items": [
                {"product_id": products["wings"].id, "quantity": 2},
                {"product_id": products["breast"].id, "quantity": 1},
                {"product_id": products["oil"].id, "quantity": 2},
            ],
        },
        headers=employee_headers,
    )

    assert response.status_code == 400
    data = response.json()
    assert data["failed_suppliers"] == [
        {"supplier": "Fresh Farm", "total": 1780, "threshold": 2000, "shortage": 220}
    ]
    assert data["successful_suppliers"][0]["supplier"] == "Golden Oil"
    assert data["successful_suppliers"][0]["surplus"] == 200
    assert data["summary"] == {"total_suppliers": 2, "failed_count": 1, "success_count": 1}
    assert "Fresh Farm" in data["suggestions"][0]

    # Nothing is placed when any group fails
    assert (await db_session.execute(select(Order))).first() is None
    await db_session.refresh(products["oil"])
    assert products["oil"].current_stock == 40
    notifier.notify_order.assert_not_awaited()


@pytest.mark.asyncio
async def test_batch_order_duplicate_products_rejected(client, employee_headers, store, products):
    oil = products["oil"]

    response = await client.post(
        "/orders/batch",
        json={
            "store_id": store.id,
            "items": [{"product_id": oil.id, "quantity": 1}, {"product_id": oil.id, "quantity": 1}],
        },
        headers=employee_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_batch_order_insufficient_stock(client, employee_headers, store, products):
    response = await client.post(
        "/orders/batch",
        json={"store_id": store.id, "items": [{"product_id": products["sauce"].id, "quantity": 11}]},
        headers=employee_headers,
    )

    assert response.status_code == 400
    assert response.json()["available"] == 6


# =============================================================================
# Delivery checks
# =============================================================================


@pytest.mark.asyncio
async def test_check_delivery_reports_per_supplier(client, employee_headers, products):
    response = await client.post(
        "/orders/check-delivery",
        json={
            "items": [
                {"product_id": products["oil"].id, "quantity": 1},
                {"product_id": products["wings"].id, "quantity": 4},
                {"product_id": 9999, "quantity": 1},
            ]
        },
        headers=employee_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_suppliers"] == 2
    assert data["qualified_count"] == 1
    assert data["failed_count"] == 1
    assert data["all_can_deliver"] is False
    assert data["skipped_product_ids"] == [9999]
    by_supplier = {s["supplier"]: s for s in data["suppliers"]}
    assert by_supplier["Golden Oil"]["can_deliver"] is False
    assert float(by_supplier["Golden Oil"]["difference"]) == -650
    assert by_supplier["Fresh Farm"]["can_deliver"] is True
    assert float(by_supplier["Fresh Farm"]["items"][0]["line_total"]) == 2480


@pytest.mark.asyncio
async def test_delivery_thresholds(client, employee_headers, products):
    response = await client.get("/orders/delivery-thresholds", headers=employee_headers)

    assert response.status_code == 200
    rows = {r["code"]: r for r in response.json()}
    assert rows["OIL-20L"]["minimum_quantity"] == 2
    assert rows["CHK-WING"]["minimum_quantity"] == 4
    assert rows["SAUCE"]["minimum_quantity"] == 11
    assert rows["SAUCE"]["tier"] == "medium"
    assert rows["OIL-20L"]["tier"] == "high"


# =============================================================================
# Queries
# =============================================================================


async def _place(client, headers, store, product, quantity):
    response = await client.post(
        "/orders",
        json={"product_id": product.id, "store_id": store.id, "requested_quantity": quantity},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_get_order_ownership(
    client, employee_headers, other_employee_headers, manager_headers, store, products
):
    created = await _place(client, employee_headers, store, products["oil"], 2)
    order_id = created["order_id"]

    assert (await client.get(f"/orders/{order_id}", headers=employee_headers)).status_code == 200
    assert (await client.get(f"/orders/{order_id}", headers=manager_headers)).status_code == 200
    other = await client.get(f"/orders/{order_id}", headers=other_employee_headers)
    assert other.status_code == 403


@pytest.mark.asyncio
async def test_get_order_not_found(client, manager_headers):
    response = await client.get("/orders/9999", headers=manager_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_orders_scoping_and_filters(
    client, employee_headers, other_employee_headers, manager_headers, store, products
):
    await _place(client, employee_headers, store, products["oil"], 2)
    await _place(client, other_employee_headers, store, products["wings"], 4)

    own = await client.get("/orders", headers=employee_headers)
    assert own.json()["total"] == 1

    everyone = await client.get("/orders", headers=manager_headers)
    assert everyone.json()["total"] == 2

    by_product = await client.get(
        "/orders", params={"product_id": products["wings"].id}, headers=manager_headers
    )
    assert by_product.json()["total"] == 1

    pending = await client.get("/orders", params={"status": "pending"}, headers=manager_headers)
    assert pending.json()["total"] == 0

    past = await client.get("/orders", params={"end_date": "2020-01-01"}, headers=manager_headers)
    assert past.json()["total"] == 0
