"""Maintenance request ORM model and status lifecycle."""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin, UTCDateTime


class MaintenanceStatus(str, Enum):
    """Maintenance request lifecycle states.

    - PENDING: Reported, not yet started
    - IN_PROGRESS: Work has started
    - COMPLETED: Work is done
    - CANCELLED: Request withdrawn or rejected
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Urgency(str, Enum):
    """How soon a request needs attention."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# Valid status transitions
VALID_MAINTENANCE_TRANSITIONS: dict[MaintenanceStatus, set[MaintenanceStatus]] = {
    MaintenanceStatus.PENDING: {MaintenanceStatus.IN_PROGRESS, MaintenanceStatus.CANCELLED},
    MaintenanceStatus.IN_PROGRESS: {MaintenanceStatus.COMPLETED, MaintenanceStatus.CANCELLED},
    MaintenanceStatus.COMPLETED: set(),  # Terminal state
    MaintenanceStatus.CANCELLED: set(),  # Terminal state
}

CLOSED_STATUSES = (MaintenanceStatus.COMPLETED.value, MaintenanceStatus.CANCELLED.value)
HIGH_PRIORITY_URGENCIES = (Urgency.HIGH.value, Urgency.URGENT.value)


class MaintenanceRequest(TimestampMixin, Base):
    """Equipment or facility repair request.

    Attributes:
        id: Primary key.
        request_number: Human-readable reference (MR-YYYYMMDD-XXXXXX).
        title: Short summary.
        description: What is wrong.
        location: Where in the store.
        category: Equipment category.
        urgency: low, medium, high or urgent.
        store_id: Affected store.
        requested_by: Reporting employee.
        assigned_to: Employee handling the repair.
        status: Lifecycle state.
        estimated_cost: Quoted cost.
        actual_cost: Final cost.
        estimated_completion: Planned completion time.
        started_at: When work started.
        actual_completion: When work finished.
        notes: Status notes, appended over time.
    """

    __tablename__ = "maintenance_request"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_number: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text)
    location: Mapped[str] = mapped_column(String(200))
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    urgency: Mapped[str] = mapped_column(String(20), default=Urgency.MEDIUM.value)

    store_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("store.id", ondelete="SET NULL"), nullable=True, index=True
    )
    requested_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True, index=True
    )
    assigned_to: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(20), default=MaintenanceStatus.PENDING.value, index=True
    )
    estimated_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    actual_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    estimated_completion: Mapped[datetime.datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )
    started_at: Mapped[datetime.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    actual_completion: Mapped[datetime.datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'cancelled')",
            name="ck_maintenance_valid_status",
        ),
        CheckConstraint(
            "urgency IN ('low', 'medium', 'high', 'urgent')",
            name="ck_maintenance_valid_urgency",
        ),
    )
