"""Tests for the audit log endpoint."""

import pytest


@pytest.mark.asyncio
async def test_logs_require_admin(client, manager_headers, employee_headers):
    for headers in (manager_headers, employee_headers):
        response = await client.get("/admin/logs", headers=headers)
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_logs_record_store_changes(client, admin_headers, admin_user, store):
    await client.put(
        f"/admin/stores/{store.id}/radius",
        json={"radius": 250, "reason": "Bigger parking lot"},
        headers=admin_headers,
    )

    response = await client.get(
        "/admin/logs", params={"action": "update_store_radius"}, headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    entry = data["items"][0]
    assert entry["user_id"] == admin_user.id
    assert entry["target_type"] == "store"
    assert entry["target_id"] == str(store.id)
    assert entry["details"]["old_radius"] == 100
    assert entry["details"]["new_radius"] == 250


@pytest.mark.asyncio
async def test_logs_filter_by_user(client, admin_headers, admin_user, employee_user, user_password):
    await client.post(
        "/auth/login", json={"username": "alice", "password": user_password}
    )

    response = await client.get(
        "/admin/logs", params={"user_id": employee_user.id}, headers=admin_headers
    )

    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["action"] == "user_login"

    response = await client.get(
        "/admin/logs", params={"user_id": admin_user.id}, headers=admin_headers
    )
    assert response.json()["total"] == 0
