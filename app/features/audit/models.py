"""System log (audit trail) ORM model."""

from __future__ import annotations

import datetime

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import UTCDateTime, utcnow


class SystemLog(Base):
    """Append-only record of who did what to which target.

    Attributes:
        id: Primary key.
        log_id: Unique external identifier (UUID hex, 32 chars).
        user_id: Acting user (null for system jobs such as scheduled checks).
        action: Action name, e.g. "create_product" or "order_anomaly_alert".
        target_type: Kind of target ("product", "store", ...).
        target_id: Target primary key as text.
        details: Free text or a JSON document.
        ip_address: Client address when triggered by a request.
        user_agent: Client user agent when triggered by a request.
        created_at: When the entry was written.
    """

    __tablename__ = "system_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    log_id: Mapped[str] = mapped_column(String(32), unique=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(50), index=True)
    target_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    target_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, nullable=False, index=True
    )

    __table_args__ = (Index("ix_system_log_target", "target_type", "target_id"),)
