"""Tests for store and geofence endpoints."""

import pytest


@pytest.mark.asyncio
async def test_list_stores_hides_inactive(client, employee_headers, store, other_store, db_session):
    other_store.is_active = False
    await db_session.commit()

    response = await client.get("/stores", headers=employee_headers)

    assert response.status_code == 200
    assert [s["code"] for s in response.json()] == ["TP01"]


@pytest.mark.asyncio
async def test_settings_include_inactive(client, manager_headers, other_store, db_session):
    other_store.is_active = False
    await db_session.commit()

    response = await client.get("/admin/stores/settings", headers=manager_headers)

    assert response.status_code == 200
    assert {s["code"] for s in response.json()} == {"TP01", "TC01"}


@pytest.mark.asyncio
async def test_create_store_defaults_radius(client, admin_headers):
    response = await client.post(
        "/stores",
        json={"code": "KH01", "name": "Kaohsiung", "latitude": 22.6273, "longitude": 120.3014},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["radius_m"] == 100


@pytest.mark.asyncio
async def test_create_store_duplicate_code(client, admin_headers, store):
    response = await client.post(
        "/stores", json={"code": "TP01", "name": "Duplicate"}, headers=admin_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_store_admin_only(client, manager_headers):
    response = await client.post(
        "/stores", json={"code": "KH01", "name": "Kaohsiung"}, headers=manager_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_store_not_found(client, employee_headers):
    response = await client.get("/stores/9999", headers=employee_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_radius_records_history(client, manager_headers, store):
    response = await client.put(
        f"/admin/stores/{store.id}/radius",
        json={"radius": 250, "reason": "GPS drift in the mall"},
        headers=manager_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "store_id": store.id,
        "store_name": "Taipei Main",
        "old_radius": 100,
        "new_radius": 250,
    }

    history = await client.get(f"/admin/stores/{store.id}/radius-history", headers=manager_headers)
    assert history.status_code == 200
    entries = history.json()
    assert len(entries) == 1
    assert entries[0]["details"]["old_radius"] == 100
    assert entries[0]["details"]["new_radius"] == 250
    assert entries[0]["details"]["reason"] == "GPS drift in the mall"


@pytest.mark.asyncio
@pytest.mark.parametrize("radius", [5, 50001])
async def test_update_radius_out_of_range(client, manager_headers, store, radius):
    response = await client.put(
        f"/admin/stores/{store.id}/radius", json={"radius": radius}, headers=manager_headers
    )

    assert response.status_code == 400
    data = response.json()
    assert data["min_radius"] == 10
    assert data["max_radius"] == 50000


@pytest.mark.asyncio
async def test_update_radius_unknown_store(client, manager_headers):
    response = await client.put(
        "/admin/stores/9999/radius", json={"radius": 200}, headers=manager_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_radius_requires_management(client, employee_headers, store):
    response = await client.put(
        f"/admin/stores/{store.id}/radius", json={"radius": 200}, headers=employee_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_batch_update_skips_invalid_entries(client, admin_headers, store, other_store):
    response = await client.put(
        "/admin/stores/batch-update",
        json={
            "updates": [
                {"store_id": store.id, "radius": 300},
                {"store_id": other_store.id, "radius": 3},
                {"store_id": 9999, "radius": 200},
            ],
            "reason": "Seasonal review",
        },
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert [c["store_id"] for c in data["updated"]] == [store.id]
    assert {s["reason"] for s in data["skipped"]} == {"radius_out_of_range", "store_not_found"}


@pytest.mark.asyncio
async def test_radius_history_unknown_store(client, manager_headers):
    response = await client.get("/admin/stores/9999/radius-history", headers=manager_headers)

    assert response.status_code == 404
