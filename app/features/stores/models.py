"""Store ORM model with geofence settings.

A store's latitude/longitude plus ``radius_m`` define the circle inside
which employees may clock in.
"""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin


class Store(TimestampMixin, Base):
    """Store (branch) table.

    Attributes:
        id: Primary key.
        code: Unique store code (e.g., "S001").
        name: Store display name.
        address: Street address.
        latitude: GPS latitude in degrees (nullable: no geofence).
        longitude: GPS longitude in degrees (nullable: no geofence).
        radius_m: Clock-in radius in metres.
        open_time: Opening time as HH:MM.
        close_time: Closing time as HH:MM.
        is_active: Inactive stores reject clock-ins and orders.
    """

    __tablename__ = "store"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100))
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    radius_m: Mapped[int] = mapped_column(Integer, default=100)
    open_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    close_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    __table_args__ = (
        CheckConstraint("radius_m > 0", name="ck_store_radius_positive"),
        CheckConstraint("latitude IS NULL OR (latitude BETWEEN -90 AND 90)", name="ck_store_latitude"),
        CheckConstraint(
            "longitude IS NULL OR (longitude BETWEEN -180 AND 180)", name="ck_store_longitude"
        ),
    )

    @property
    def has_geofence(self) -> bool:
        """True when the store has coordinates to check clock-ins against."""
        return self.latitude is not None and self.longitude is not None
