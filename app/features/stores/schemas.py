"""Pydantic schemas for store and geofence endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class StoreResponse(BaseModel):
    """Store with geofence settings."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius_m: int = Field(..., description="Clock-in radius in metres.")
    open_time: str | None = None
    close_time: str | None = None
    is_active: bool


class StoreCreate(BaseModel):
    """Request schema for creating a store."""

    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    address: str | None = Field(None, max_length=255)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    radius_m: int | None = Field(None, gt=0, description="Defaults to the configured radius.")
    open_time: str | None = Field(None, pattern=TIME_PATTERN)
    close_time: str | None = Field(None, pattern=TIME_PATTERN)


class RadiusUpdate(BaseModel):
    """Change one store's clock-in radius.

    The allowed range (10-50000 m by default) is checked by the service so
    that out-of-range values produce a 400 with the limits.
    """

    radius: int = Field(..., description="New radius in metres.")
    reason: str | None = Field(None, max_length=255)


class RadiusChange(BaseModel):
    """Result of a radius change."""

    store_id: int
    store_name: str
    old_radius: int
    new_radius: int


class BatchRadiusEntry(BaseModel):
    store_id: int
    radius: int


class BatchRadiusUpdate(BaseModel):
    """Change several stores' radii at once."""

    updates: list[BatchRadiusEntry] = Field(..., min_length=1, max_length=200)
    reason: str | None = Field(None, max_length=255)


class SkippedRadiusEntry(BaseModel):
    store_id: int
    radius: int
    reason: str


class BatchRadiusResult(BaseModel):
    """Applied and skipped entries of a batch update."""

    updated: list[RadiusChange]
    skipped: list[SkippedRadiusEntry]


class RadiusHistoryEntry(BaseModel):
    """One past radius change from the audit trail."""

    changed_at: datetime
    changed_by: int | None = None
    details: Any = None
