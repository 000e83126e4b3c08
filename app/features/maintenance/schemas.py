"""Pydantic schemas for maintenance request endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.features.maintenance.models import MaintenanceStatus, Urgency


class MaintenanceCreate(BaseModel):
    """Request schema for reporting a repair."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    location: str = Field(..., min_length=1, max_length=200)
    urgency: Urgency
    category: str | None = Field(None, max_length=50)
    store_id: int | None = None
    estimated_cost: Decimal | None = Field(None, ge=0)


class MaintenanceStatusUpdate(BaseModel):
    """Status change with optional assignment and cost details."""

    status: MaintenanceStatus
    assigned_to: int | None = None
    estimated_completion: datetime | None = None
    actual_cost: Decimal | None = Field(None, ge=0)
    note: str | None = Field(None, max_length=1000)


class MaintenanceResponse(BaseModel):
    """A maintenance request."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    request_number: str
    title: str
    description: str
    location: str
    category: str | None = None
    urgency: Urgency
    store_id: int | None = None
    requested_by: int | None = None
    assigned_to: int | None = None
    status: MaintenanceStatus
    estimated_cost: Decimal | None = None
    actual_cost: Decimal | None = None
    estimated_completion: datetime | None = None
    started_at: datetime | None = None
    actual_completion: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class MaintenanceStats(BaseModel):
    """Request counts over a recent window."""

    period_days: int
    total: int
    by_status: dict[str, int]
    high_priority: int = Field(..., description="Open requests with high or urgent urgency.")
