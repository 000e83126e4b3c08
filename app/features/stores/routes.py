"""API routes for stores and clock-in geofence settings."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.features.auth.dependencies import AdminUser, Client, CurrentUser, ManagementUser
from app.features.stores.schemas import (
    BatchRadiusResult,
    BatchRadiusUpdate,
    RadiusChange,
    RadiusHistoryEntry,
    RadiusUpdate,
    StoreCreate,
    StoreResponse,
)
from app.features.stores.service import StoreService

router = APIRouter(prefix="/stores", tags=["stores"])
admin_router = APIRouter(prefix="/admin/stores", tags=["stores"])


# =============================================================================
# Stores
# =============================================================================


@router.get("", response_model=list[StoreResponse], summary="List active stores")
async def list_stores(
    _user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[StoreResponse]:
    """List active stores (used by clock-in, revenue and order forms)."""
    return await StoreService().list_stores(db)


@router.post(
    "",
    response_model=StoreResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a store",
)
async def create_store(
    data: StoreCreate,
    user: AdminUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StoreResponse:
    """Create a store. Admin only."""
    return await StoreService().create_store(db, data, actor=user, client=client)


@router.get("/{store_id}", response_model=StoreResponse, summary="Get a store")
async def get_store(
    store_id: int,
    _user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StoreResponse:
    """Get one store."""
    store = await StoreService().get_store(db, store_id)
    return StoreResponse.model_validate(store)


# =============================================================================
# Geofence settings (admin)
# =============================================================================


@admin_router.get(
    "/settings",
    response_model=list[StoreResponse],
    summary="Geofence settings of every store",
)
async def store_settings(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[StoreResponse]:
    """All stores, including inactive ones, with coordinates and radius."""
    return await StoreService().list_stores(db, include_inactive=True)


@admin_router.put(
    "/batch-update",
    response_model=BatchRadiusResult,
    summary="Update several store radii",
    description="""
Apply radius changes to several stores. Admin only.

Entries with a radius outside the allowed range (10-50000 m by default) or an
unknown store are **skipped** and reported; the others are applied.
""",
)
async def batch_update_radius(
    data: BatchRadiusUpdate,
    user: AdminUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BatchRadiusResult:
    """Batch radius update."""
    return await StoreService().batch_update_radius(db, data, actor=user, client=client)


@admin_router.put(
    "/{store_id}/radius",
    response_model=RadiusChange,
    summary="Update a store's clock-in radius",
    description="""
Change the clock-in radius of one store.

Returns **400** if the radius is outside the allowed range (10-50000 m by
default) and **404** if the store does not exist. The change is written to
the audit log with the old and new values.
""",
)
async def update_radius(
    store_id: int,
    data: RadiusUpdate,
    user: ManagementUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RadiusChange:
    """Update one store's radius."""
    return await StoreService().update_radius(db, store_id, data, actor=user, client=client)


@admin_router.get(
    "/{store_id}/radius-history",
    response_model=list[RadiusHistoryEntry],
    summary="Radius change history of a store",
)
async def radius_history(
    store_id: int,
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[RadiusHistoryEntry]:
    """Past radius changes, newest first."""
    return await StoreService().radius_history(db, store_id)
