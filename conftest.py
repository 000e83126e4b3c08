"""Shared pytest fixtures for StoreOps tests.

Tests run against a throwaway SQLite file; tables are created and dropped
around every test. Environment overrides are applied before the app is
imported so the cached settings pick them up.
"""

import os
import tempfile
from collections.abc import Awaitable, Callable
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

_TEST_DB = Path(tempfile.mkdtemp(prefix="storeops-tests-")) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB}"
os.environ["APP_ENV"] = "testing"
os.environ["AUTH_BCRYPT_ROUNDS"] = "4"
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["TELEGRAM_BOSS_CHAT_ID"] = ""
os.environ["TELEGRAM_EMPLOYEE_CHAT_ID"] = ""

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

import app.models  # noqa: E402, F401
from app.core.database import Base, get_engine, get_session_maker  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.features.auth.service import AuthService  # noqa: E402
from app.features.employees.models import User, UserRole  # noqa: E402
from app.features.inventory.models import Product  # noqa: E402
from app.features.notifications.telegram import TelegramNotifier, get_notifier  # noqa: E402
from app.features.stores.models import Store  # noqa: E402
from app.main import app  # noqa: E402

TEST_PASSWORD = "secret123"

# Store TP01 sits at Taipei Main Station
STORE_LAT = 25.0478
STORE_LON = 121.5170


@pytest.fixture(autouse=True)
async def database():
    """Create all tables before each test and drop them afterwards."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session():
    """Async session on the test database."""
    async with get_session_maker()() as session:
        yield session


@pytest.fixture
def notifier() -> AsyncMock:
    """Telegram notifier double; every notify_* call is recorded."""
    return AsyncMock(spec=TelegramNotifier)


@pytest.fixture
async def client(notifier: AsyncMock):
    """Create async HTTP client for testing FastAPI endpoints."""
    app.dependency_overrides[get_notifier] = lambda: notifier
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.pop(get_notifier, None)


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
async def store(db_session: AsyncSession) -> Store:
    """Store with a 100 m geofence."""
    store = Store(
        code="TP01",
        name="Taipei Main",
        latitude=STORE_LAT,
        longitude=STORE_LON,
        radius_m=100,
        is_active=True,
    )
    db_session.add(store)
    await db_session.commit()
    return store


@pytest.fixture
async def other_store(db_session: AsyncSession) -> Store:
    """Store without coordinates (no geofence)."""
    store = Store(code="TC01", name="Taichung", radius_m=150, is_active=True)
    db_session.add(store)
    await db_session.commit()
    return store


@pytest.fixture
def user_password() -> str:
    """Plain-text password shared by every seeded account."""
    return TEST_PASSWORD


@pytest.fixture
def password_hash(user_password: str) -> str:
    return hash_password(user_password)


async def _add_user(
    db: AsyncSession,
    username: str,
    role: UserRole,
    password_hash: str,
    store: Store | None = None,
) -> User:
    user = User(
        username=username,
        password_hash=password_hash,
        name=username.capitalize(),
        role=role.value,
        email=f"{username}@example.com",
        store_id=store.id if store else None,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def admin_user(db_session: AsyncSession, password_hash: str) -> User:
    return await _add_user(db_session, "admin", UserRole.ADMIN, password_hash)


@pytest.fixture
async def manager_user(db_session: AsyncSession, password_hash: str, store: Store) -> User:
    return await _add_user(db_session, "manager", UserRole.MANAGER, password_hash, store)


@pytest.fixture
async def employee_user(db_session: AsyncSession, password_hash: str, store: Store) -> User:
    return await _add_user(db_session, "alice", UserRole.EMPLOYEE, password_hash, store)


@pytest.fixture
async def other_employee(db_session: AsyncSession, password_hash: str, store: Store) -> User:
    return await _add_user(db_session, "bob", UserRole.EMPLOYEE, password_hash, store)


@pytest.fixture
def token_for(db_session: AsyncSession) -> Callable[[User], Awaitable[dict[str, str]]]:
    """Issue a bearer token for a user and return request headers."""

    async def _headers(user: User) -> dict[str, str]:
        token, _ = await AuthService().create_session(db_session, user)
        await db_session.commit()
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def admin_headers(token_for, admin_user: User) -> dict[str, str]:
    return await token_for(admin_user)


@pytest.fixture
async def manager_headers(token_for, manager_user: User) -> dict[str, str]:
    return await token_for(manager_user)


@pytest.fixture
async def employee_headers(token_for, employee_user: User) -> dict[str, str]:
    return await token_for(employee_user)


@pytest.fixture
async def other_employee_headers(token_for, other_employee: User) -> dict[str, str]:
    return await token_for(other_employee)


@pytest.fixture
async def products(db_session: AsyncSession) -> dict[str, Product]:
    """Catalog with two suppliers and one unassigned product.

    - oil: 850/tin, threshold 1500, Golden Oil
    - wings, breast: Fresh Farm, threshold 2000
    - sauce: no supplier, threshold 1000, already below min stock
    """
    catalog = {
        "oil": Product(
            code="OIL-20L",
            name="Frying oil",
            unit="tin",
            current_stock=40,
            min_stock=8,
            unit_cost=Decimal("850"),
            supplier="Golden Oil",
            delivery_threshold=Decimal("1500"),
            frequent_order_days=1,
            rare_order_days=7,
            is_active=True,
        ),
        "wings": Product(
            code="CHK-WING",
            name="Chicken wings",
            unit="box",
            current_stock=60,
            min_stock=15,
            unit_cost=Decimal("620"),
            supplier="Fresh Farm",
            delivery_threshold=Decimal("2000"),
            frequent_order_days=1,
            rare_order_days=7,
            is_active=True,
        ),
        "breast": Product(
            code="CHK-BREAST",
            name="Chicken breast",
            unit="box",
            current_stock=45,
            min_stock=12,
            unit_cost=Decimal("540"),
            supplier="Fresh Farm",
            delivery_threshold=Decimal("2000"),
            frequent_order_days=0,
            rare_order_days=0,
            is_active=True,
        ),
        "sauce": Product(
            code="SAUCE",
            name="Chili sauce",
            unit="bottle",
            current_stock=6,
            min_stock=10,
            unit_cost=Decimal("95"),
            supplier=None,
            delivery_threshold=Decimal("1000"),
            frequent_order_days=0,
            rare_order_days=0,
            is_active=True,
        ),
    }
    db_session.add_all(catalog.values())
    await db_session.commit()
    return catalog
