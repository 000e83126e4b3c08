"""Tests for login, token verification and logout."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from app.features.audit.models import SystemLog
from app.features.auth.models import AuthSession
from app.shared.models import utcnow


@pytest.mark.asyncio
async def test_login_returns_token_and_redirect(client, employee_user, user_password, notifier):
    response = await client.post(
        "/auth/login", json={"username": "alice", "password": user_password}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["redirect_url"] == "/employee"
    assert data["user"]["username"] == "alice"
    assert "password_hash" not in data["user"]
    notifier.notify_login.assert_awaited_once()
    assert notifier.notify_login.await_args.kwargs["store_name"] == "Taipei Main"


@pytest.mark.asyncio
async def test_login_management_redirects_to_admin(client, manager_user, user_password):
    response = await client.post(
        "/auth/login", json={"username": "manager", "password": user_password}
    )

    assert response.status_code == 200
    assert response.json()["redirect_url"] == "/admin"


@pytest.mark.asyncio
async def test_login_writes_audit_entry(client, employee_user, user_password, db_session):
    await client.post("/auth/login", json={"username": "alice", "password": user_password})

    entries = (
        await db_session.execute(select(SystemLog).where(SystemLog.action == "user_login"))
    ).scalars().all()
    assert len(entries) == 1
    assert entries[0].user_id == employee_user.id
    assert entries[0].ip_address is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username,password",
    [("alice", "wrong-password"), ("nobody", "secret123")],
)
async def test_login_rejects_bad_credentials(client, employee_user, notifier, username, password):
    response = await client.post("/auth/login", json={"username": username, "password": password})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid username or password"
    notifier.notify_login.assert_not_awaited()


@pytest.mark.asyncio
async def test_login_rejects_inactive_account(client, employee_user, user_password, db_session):
    employee_user.is_active = False
    await db_session.commit()

    response = await client.post(
        "/auth/login", json={"username": "alice", "password": user_password}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid username or password"


@pytest.mark.asyncio
async def test_verify_and_profile(client, employee_headers):
    verify = await client.get("/auth/verify", headers=employee_headers)
    assert verify.status_code == 200
    assert verify.json()["valid"] is True

    profile = await client.get("/auth/profile", headers=employee_headers)
    assert profile.status_code == 200
    assert profile.json()["store_name"] == "Taipei Main"


@pytest.mark.asyncio
async def test_missing_token_is_unauthorized(client):
    response = await client.get("/auth/verify")

    assert response.status_code == 401
    assert response.headers["content-type"].startswith("application/problem+json")


@pytest.mark.asyncio
async def test_unknown_token_is_unauthorized(client):
    response = await client.get("/auth/verify", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_token_is_unauthorized(client, employee_headers, db_session):
    session = (await db_session.execute(select(AuthSession))).scalar_one()
    session.expires_at = utcnow() - timedelta(minutes=1)
    await db_session.commit()

    response = await client.get("/auth/verify", headers=employee_headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_token(client, employee_headers):
    response = await client.post("/auth/logout", headers=employee_headers)
    assert response.status_code == 204

    response = await client.get("/auth/verify", headers=employee_headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_disabled_account_token_rejected(client, employee_user, employee_headers, db_session):
    employee_user.is_active = False
    await db_session.commit()

    response = await client.get("/auth/verify", headers=employee_headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Account is disabled"


@pytest.mark.asyncio
async def test_role_guard_returns_403(client, employee_headers):
    response = await client.get("/employees", headers=employee_headers)

    assert response.status_code == 403
