"""Tests for attendance endpoints."""

import pytest


@pytest.mark.asyncio
async def test_clock_endpoint_toggles(client, employee_headers, store, notifier):
    body = {"store_id": store.id, "latitude": store.latitude, "longitude": store.longitude}

    first = await client.post("/attendance/clock", json=body, headers=employee_headers)
    assert first.status_code == 200
    assert first.json()["action"] == "check_in"

    today = await client.get("/attendance/today", headers=employee_headers)
    assert today.status_code == 200
    assert today.json()["check_out_at"] is None

    second = await client.post("/attendance/clock", json=body, headers=employee_headers)
    assert second.status_code == 200
    assert second.json()["action"] == "check_out"

    third = await client.post("/attendance/clock", json=body, headers=employee_headers)
    assert third.status_code == 400
    assert notifier.notify_attendance.await_count == 2


@pytest.mark.asyncio
async def test_clock_outside_radius_returns_problem(client, employee_headers, store):
    body = {"store_id": store.id, "latitude": store.latitude + 0.01, "longitude": store.longitude}

    response = await client.post("/attendance/clock", json=body, headers=employee_headers)

    assert response.status_code == 400
    data = response.json()
    assert data["radius_m"] == 100
    assert data["distance_m"] > 1000


@pytest.mark.asyncio
async def test_today_is_null_before_clocking(client, employee_headers):
    response = await client.get("/attendance/today", headers=employee_headers)

    assert response.status_code == 200
    assert response.json() is None


@pytest.mark.asyncio
async def test_employee_sees_only_own_records(
    client, employee_headers, other_employee_headers, manager_headers, store, other_employee
):
    body = {"store_id": store.id, "latitude": store.latitude, "longitude": store.longitude}
    await client.post("/attendance/clock", json=body, headers=employee_headers)
    await client.post("/attendance/clock", json=body, headers=other_employee_headers)

    own = await client.get(
        "/attendance", params={"user_id": other_employee.id}, headers=employee_headers
    )
    assert own.json()["total"] == 1
    assert own.json()["items"][0]["user_id"] != other_employee.id

    everyone = await client.get("/attendance", headers=manager_headers)
    assert everyone.json()["total"] == 2

    filtered = await client.get(
        "/attendance", params={"user_id": other_employee.id}, headers=manager_headers
    )
    assert filtered.json()["total"] == 1
    assert filtered.json()["items"][0]["user_id"] == other_employee.id


@pytest.mark.asyncio
async def test_clock_requires_auth(client, store):
    response = await client.post(
        "/attendance/clock", json={"store_id": store.id, "latitude": 0, "longitude": 0}
    )

    assert response.status_code == 401
