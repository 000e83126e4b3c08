"""Shared utility functions."""

import math
import uuid
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from fastapi import Query
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.schemas import PaginatedResponse, PaginationParams


def pagination_params(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page (max 100)"),
) -> PaginationParams:
    """FastAPI dependency building PaginationParams from query parameters."""
    return PaginationParams(page=page, page_size=page_size)


def paginate_response[T](
    items: list[T],
    total: int,
    pagination: PaginationParams,
) -> PaginatedResponse[T]:
    """Create a paginated response from items and total count.

    Args:
        items: List of items for the current page.
        total: Total count of all items.
        pagination: Pagination parameters used for the query.

    Returns:
        PaginatedResponse with computed page count.
    """
    pages = math.ceil(total / pagination.page_size) if total > 0 else 0
    return PaginatedResponse[T](
        items=items,
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
        pages=pages,
    )


async def fetch_page(
    db: AsyncSession,
    stmt: Select[Any],
    pagination: PaginationParams,
) -> tuple[list[Any], int]:
    """Run a filtered select for one page and count the full result set.

    Args:
        db: Database session.
        stmt: Filtered and ordered select statement.
        pagination: Page to fetch.

    Returns:
        Tuple of (rows for the page, total matching rows).
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    result = await db.execute(stmt.offset(pagination.offset).limit(pagination.limit))
    return list(result.scalars().all()), total


def reference_number(prefix: str, on: date | datetime) -> str:
    """Build a human-readable reference like ``ORD-20240115-3FA2C1``.

    Args:
        prefix: Document prefix (ORD, MR...).
        on: Date the reference is issued for.

    Returns:
        Reference number with a 6-character random suffix.
    """
    return f"{prefix}-{on:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def round_half_up(value: Decimal | float | int, places: int = 0) -> Decimal:
    """Round like a cashier: halves go away from zero.

    Args:
        value: Number to round.
        places: Decimal places to keep.

    Returns:
        Rounded Decimal.
    """
    quantum = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
