#!/usr/bin/env python
"""Check database connectivity and schema.

Usage:
    uv run python scripts/check_db.py
"""

import asyncio
import sys

from sqlalchemy import inspect, text
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError

import app.models  # noqa: F401
from app.core.config import get_settings
from app.core.database import Base, get_engine


async def check_database() -> int:
    """Verify database connection and that every table exists."""
    settings = get_settings()

    print("StoreOps - Database Connectivity Check")
    print("=" * 45)
    print(f"Database URL: {make_url(settings.database_url).render_as_string(hide_password=True)}")
    print()

    engine = get_engine()

    try:
        async with engine.connect() as conn:
            # Test basic connectivity
            result = await conn.execute(text("SELECT 1"))
            if result.scalar() != 1:
                print("[FAIL] SELECT 1 returned an unexpected value")
                return 1
            print("[OK] Basic connectivity")

            existing = set(await conn.run_sync(lambda c: inspect(c).get_table_names()))

        expected = set(Base.metadata.tables)
        missing = sorted(expected - existing)
        if missing:
            print(f"[WARN] Missing tables: {', '.join(missing)}")
            print("       Start the API with DATABASE_AUTO_CREATE=true or run seed_demo_data.py")
        else:
            print(f"[OK] All {len(expected)} tables present")

        print()
        print("Database check completed successfully!")
        return 0

    except SQLAlchemyError as e:
        print(f"[FAIL] Connection failed: {e}")
        print()
        print("Troubleshooting:")
        print("  1. Check DATABASE_URL in .env file")
        print("  2. For SQLite, make sure the data directory is writable")
        print("  3. For PostgreSQL, install the postgres extra (asyncpg)")
        return 1

    finally:
        await engine.dispose()


def main() -> None:
    sys.exit(asyncio.run(check_database()))


if __name__ == "__main__":
    main()
