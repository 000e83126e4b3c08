"""User (employee) ORM model and roles."""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin


class UserRole(str, Enum):
    """Access roles, from most to least privileged.

    - ADMIN: everything, including deactivating employees
    - MANAGER: back-office management (employees, products, reports)
    - EMPLOYEE: clock-in, revenue entry, orders, maintenance requests
    - INTERN: same self-service access as EMPLOYEE
    """

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    INTERN = "intern"


MANAGEMENT_ROLES: frozenset[str] = frozenset({UserRole.ADMIN.value, UserRole.MANAGER.value})


class User(TimestampMixin, Base):
    """Employee account.

    Attributes:
        id: Primary key.
        username: Unique login name.
        password_hash: bcrypt hash of the password.
        name: Display name.
        role: One of UserRole.
        email: Unique email (optional).
        store_id: Primary store the employee works at.
        hire_date: First working day.
        salary: Monthly salary.
        is_active: Inactive users cannot log in.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(100))
    name: Mapped[str] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(String(20), default=UserRole.EMPLOYEE.value, index=True)

    # Contact
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    birth_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    emergency_contact_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Employment
    store_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("store.id", ondelete="SET NULL"), nullable=True, index=True
    )
    department: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    position: Mapped[str | None] = mapped_column(String(50), nullable=True)
    hire_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    salary: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'manager', 'employee', 'intern')",
            name="ck_app_user_valid_role",
        ),
        CheckConstraint("salary IS NULL OR salary >= 0", name="ck_app_user_salary_non_negative"),
    )

    @property
    def is_management(self) -> bool:
        """Admins and managers see everyone's data."""
        return self.role in MANAGEMENT_ROLES
