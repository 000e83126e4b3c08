#!/usr/bin/env python
"""Seed a demo dataset: stores, staff accounts and products.

Idempotent: rows whose unique code/username already exists are skipped.

Usage:
    uv run python scripts/seed_demo_data.py --confirm
    uv run python scripts/seed_demo_data.py --confirm --password 'another-secret'
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_engine, get_session_maker, init_db
from app.core.security import hash_password_async
from app.features.employees.models import User, UserRole
from app.features.inventory.models import Product
from app.features.stores.models import Store

STORES: list[dict[str, Any]] = [
    {
        "code": "TP01",
        "name": "Taipei Main",
        "address": "No. 1, Sec. 1, Zhongxiao E. Rd, Taipei",
        "latitude": 25.0478,
        "longitude": 121.5170,
        "radius_m": 100,
        "open_time": "09:00",
        "close_time": "21:00",
    },
    {
        "code": "TC01",
        "name": "Taichung",
        "address": "No. 100, Taiwan Blvd, Taichung",
        "latitude": 24.1477,
        "longitude": 120.6736,
        "radius_m": 150,
        "open_time": "10:00",
        "close_time": "22:00",
    },
]

USERS: list[dict[str, Any]] = [
    {"username": "admin", "name": "System Admin", "role": UserRole.ADMIN, "store": None},
    {"username": "manager", "name": "Store Manager", "role": UserRole.MANAGER, "store": "TP01"},
    {"username": "alice", "name": "Alice Chen", "role": UserRole.EMPLOYEE, "store": "TP01"},
    {"username": "bob", "name": "Bob Lin", "role": UserRole.EMPLOYEE, "store": "TC01"},
    {"username": "intern", "name": "Ivy Wu", "role": UserRole.INTERN, "store": "TC01"},
]

PRODUCTS: list[dict[str, Any]] = [
    {
        "code": "OIL-20L",
        "name": "Frying oil 20L",
        "category": "Consumables",
        "unit": "tin",
        "current_stock": 40,
        "min_stock": 8,
        "unit_cost": Decimal("850"),
        "supplier": "Golden Oil Co.",
        "delivery_threshold": Decimal("1500"),
        "rare_order_days": 14,
    },
    {
        "code": "CHK-WING",
        "name": "Chicken wings 5kg",
        "category": "Frozen",
        "unit": "box",
        "current_stock": 60,
        "min_stock": 15,
        "unit_cost": Decimal("620"),
        "supplier": "Fresh Farm Foods",
        "delivery_threshold": Decimal("2000"),
        "frequent_order_days": 1,
    },
    {
        "code": "CHK-BREAST",
        "name": "Chicken breast 5kg",
        "category": "Frozen",
        "unit": "box",
        "current_stock": 45,
        "min_stock": 12,
        "unit_cost": Decimal("540"),
        "supplier": "Fresh Farm Foods",
        "delivery_threshold": Decimal("2000"),
    },
    {
        "code": "BAG-M",
        "name": "Paper bag (M) x500",
        "category": "Packaging",
        "unit": "pack",
        "current_stock": 30,
        "min_stock": 5,
        "unit_cost": Decimal("180"),
        "supplier": "PackRight",
        "delivery_threshold": Decimal("500"),
        "rare_order_days": 30,
    },
    {
        "code": "SAUCE-CHILI",
        "name": "Chili sauce 1kg",
        "category": "Condiments",
        "unit": "bottle",
        "current_stock": 6,
        "min_stock": 10,
        "unit_cost": Decimal("95"),
        "supplier": None,
        "delivery_threshold": Decimal("1000"),
    },
]


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(description="Seed StoreOps demo data.")
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Required: confirm writing demo data",
    )
    parser.add_argument(
        "--password",
        default="storeops-demo",
        help="Password for every seeded account (default: storeops-demo)",
    )
    return parser


async def _exists(db: AsyncSession, column: Any, value: str) -> bool:
    return (await db.execute(select(column).where(column == value))).first() is not None


async def seed(db: AsyncSession, password: str) -> dict[str, int]:
    """Insert missing demo rows.

    Returns:
        Number of rows created per table.
    """
    counts = {"store": 0, "app_user": 0, "product": 0}

    stores: dict[str, Store] = {}
    for data in STORES:
        existing = (await db.execute(select(Store).where(Store.code == data["code"]))).scalar()
        if existing is None:
            existing = Store(**data, is_active=True)
            db.add(existing)
            counts["store"] += 1
        stores[data["code"]] = existing
    await db.flush()

    password_hash = await hash_password_async(password)
    for data in USERS:
        if await _exists(db, User.username, data["username"]):
            continue
        store = stores.get(data["store"]) if data["store"] else None
        db.add(
            User(
                username=data["username"],
                password_hash=password_hash,
                name=data["name"],
                role=data["role"].value,
                store_id=store.id if store else None,
                is_active=True,
            )
        )
        counts["app_user"] += 1

    for data in PRODUCTS:
        if await _exists(db, Product.code, data["code"]):
            continue
        db.add(Product(**data, is_active=True))
        counts["product"] += 1

    await db.commit()
    return counts


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    if settings.is_production:
        print("ERROR: Refusing to seed demo data in production.")
        return 1
    if not args.confirm:
        print("ERROR: --confirm flag required. This writes demo accounts and products.")
        return 1

    try:
        await init_db()
        async with get_session_maker()() as db:
            counts = await seed(db, args.password)
    finally:
        await get_engine().dispose()

    print("\nDemo data")
    print("-" * 40)
    for table, count in counts.items():
        print(f"  {table:<20} {count:>6} created")
    print("-" * 40)
    print(f"  Accounts: {', '.join(u['username'] for u in USERS)}")
    print()
    return 0


def main() -> None:
    args = create_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
