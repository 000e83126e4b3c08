"""Pydantic schemas for audit log endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class SystemLogResponse(BaseModel):
    """A single audit entry."""

    log_id: str
    user_id: int | None = None
    action: str = Field(..., description="Action name, e.g. 'update_store_radius'.")
    target_type: str | None = None
    target_id: str | None = None
    details: Any = Field(None, description="Parsed JSON details, or the raw text.")
    ip_address: str | None = None
    created_at: datetime
