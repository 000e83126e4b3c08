"""Pydantic schemas for employee endpoints."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.security import BCRYPT_MAX_PASSWORD_BYTES
from app.features.employees.models import UserRole

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _check_password_bytes(v: str | None) -> str | None:
    if v is not None and len(v.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return v


# =============================================================================
# Responses
# =============================================================================


class UserResponse(BaseModel):
    """Public view of an employee account (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str
    role: UserRole
    email: str | None = None
    phone: str | None = None
    store_id: int | None = None
    department: str | None = None
    position: str | None = None
    hire_date: date | None = None
    is_active: bool


class EmployeeDetailResponse(UserResponse):
    """Full employee record for management views."""

    address: str | None = None
    birth_date: date | None = None
    gender: str | None = None
    salary: Decimal | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    created_at: datetime
    updated_at: datetime


class EmployeeStats(BaseModel):
    """Headcount and salary overview."""

    total: int = Field(..., description="All accounts, active or not.")
    active: int
    recent_hires: int = Field(..., description="Hired within the last 30 days.")
    average_salary: Decimal | None = Field(
        None, description="Mean salary over active employees with a salary set."
    )
    by_role: dict[str, int]
    by_store: dict[str, int] = Field(..., description="Active employees per store name.")
    by_department: dict[str, int]


# =============================================================================
# Requests
# =============================================================================


class _EmployeeFields(BaseModel):
    email: str | None = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    phone: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=255)
    birth_date: date | None = None
    gender: str | None = Field(None, max_length=10)
    store_id: int | None = None
    department: str | None = Field(None, max_length=50)
    position: str | None = Field(None, max_length=50)
    hire_date: date | None = None
    salary: Decimal | None = Field(None, ge=0)
    emergency_contact_name: str | None = Field(None, max_length=100)
    emergency_contact_phone: str | None = Field(None, max_length=30)


class EmployeeCreate(_EmployeeFields):
    """Request schema for creating an employee."""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.EMPLOYEE

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v: str | None) -> str | None:
        """bcrypt ignores bytes past the limit, so longer passwords are rejected."""
        return _check_password_bytes(v)


class EmployeeUpdate(_EmployeeFields):
    """Partial update; only fields that are sent are changed."""

    username: str | None = Field(None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str | None = Field(None, min_length=6)
    name: str | None = Field(None, min_length=1, max_length=100)
    role: UserRole | None = None
    is_active: bool | None = None

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v: str | None) -> str | None:
        """bcrypt ignores bytes past the limit, so longer passwords are rejected."""
        return _check_password_bytes(v)
