"""Tests for employee management endpoints."""

import pytest
from sqlalchemy import select

from app.features.audit.models import SystemLog
from app.features.auth.models import AuthSession


def new_employee(**overrides):
    payload = {
        "username": "carol",
        "password": "carol-pass",
        "name": "Carol",
        "email": "carol@example.com",
        "department": "Kitchen",
        "salary": "32000",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_employee(client, manager_headers, store, db_session):
    response = await client.post(
        "/employees", json=new_employee(store_id=store.id), headers=manager_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["username"] == "carol"
    assert data["role"] == "employee"
    assert data["hire_date"] is not None
    assert "password_hash" not in data

    audit = (
        await db_session.execute(select(SystemLog).where(SystemLog.action == "create_employee"))
    ).scalar_one()
    assert audit.target_id == str(data["id"])


@pytest.mark.asyncio
async def test_create_employee_duplicate_username_conflicts(client, manager_headers, employee_user):
    response = await client.post(
        "/employees", json=new_employee(username="alice"), headers=manager_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_employee_duplicate_email_conflicts(client, manager_headers, employee_user):
    response = await client.post(
        "/employees", json=new_employee(email="alice@example.com"), headers=manager_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_employee_unknown_store(client, manager_headers):
    response = await client.post(
        "/employees", json=new_employee(store_id=9999), headers=manager_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_manager_cannot_create_admin(client, manager_headers):
    response = await client.post(
        "/employees", json=new_employee(role="admin"), headers=manager_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_employee_cannot_create_employee(client, employee_headers):
    response = await client.post("/employees", json=new_employee(), headers=employee_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_short_password_rejected(client, manager_headers):
    response = await client.post(
        "/employees", json=new_employee(password="123"), headers=manager_headers
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_employees_filters(client, manager_headers, employee_user, other_employee):
    response = await client.get(
        "/employees", params={"role": "employee", "search": "ALI"}, headers=manager_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["username"] == "alice"


@pytest.mark.asyncio
async def test_employee_reads_only_own_record(
    client, employee_headers, employee_user, other_employee
):
    own = await client.get(f"/employees/{employee_user.id}", headers=employee_headers)
    other = await client.get(f"/employees/{other_employee.id}", headers=employee_headers)

    assert own.status_code == 200
    assert other.status_code == 403


@pytest.mark.asyncio
async def test_update_employee_partial(client, manager_headers, employee_user):
    response = await client.patch(
        f"/employees/{employee_user.id}",
        json={"position": "Shift lead", "phone": "0912-345-678"},
        headers=manager_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["position"] == "Shift lead"
    assert data["name"] == "Alice"


@pytest.mark.asyncio
async def test_update_employee_username_taken(client, manager_headers, employee_user, other_employee):
    response = await client.patch(
        f"/employees/{employee_user.id}", json={"username": "bob"}, headers=manager_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_employee_password_allows_new_login(
    client, manager_headers, employee_user
):
    response = await client.patch(
        f"/employees/{employee_user.id}", json={"password": "brand-new"}, headers=manager_headers
    )
    assert response.status_code == 200

    login = await client.post("/auth/login", json={"username": "alice", "password": "brand-new"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_manager_cannot_edit_admin(client, manager_headers, admin_user):
    response = await client.patch(
        f"/employees/{admin_user.id}", json={"name": "Root"}, headers=manager_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_deactivate_employee_revokes_sessions(
    client, admin_headers, employee_user, employee_headers, db_session
):
    response = await client.delete(f"/employees/{employee_user.id}", headers=admin_headers)
    assert response.status_code == 204

    await db_session.refresh(employee_user)
    assert employee_user.is_active is False

    sessions = (
        await db_session.execute(
            select(AuthSession).where(AuthSession.user_id == employee_user.id)
        )
    ).scalars().all()
    for session in sessions:
        await db_session.refresh(session)
        assert session.revoked_at is not None

    verify = await client.get("/auth/verify", headers=employee_headers)
    assert verify.status_code == 401


@pytest.mark.asyncio
async def test_deactivate_is_admin_only(client, manager_headers, employee_user):
    response = await client.delete(f"/employees/{employee_user.id}", headers=manager_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_cannot_deactivate_self(client, admin_headers, admin_user):
    response = await client.delete(f"/employees/{admin_user.id}", headers=admin_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_deactivate_unknown_employee(client, admin_headers):
    response = await client.delete("/employees/9999", headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_employee_stats(client, manager_headers, employee_user, other_employee):
    response = await client.get("/employees/stats/overview", headers=manager_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["active"] == 3
    assert data["by_role"] == {"manager": 1, "employee": 2}
    assert data["by_store"] == {"Taipei Main": 3}
