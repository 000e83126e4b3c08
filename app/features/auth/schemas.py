"""Pydantic schemas for authentication endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.features.employees.schemas import UserResponse


class LoginRequest(BaseModel):
    """Username/password login."""

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(BaseModel):
    """Issued bearer token plus where the client should go next."""

    token: str = Field(..., description="Opaque bearer token. Send as 'Authorization: Bearer <token>'.")
    token_type: Literal["bearer"] = "bearer"
    expires_at: datetime
    redirect_url: str = Field(..., description="'/admin' for admin and manager, '/employee' otherwise.")
    user: UserResponse


class VerifyResponse(BaseModel):
    """Token check result."""

    valid: bool
    user: UserResponse


class ProfileResponse(UserResponse):
    """Caller's own profile."""

    store_name: str | None = None
