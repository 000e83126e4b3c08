"""Equipment and facility maintenance requests."""

from app.features.maintenance.models import (
    VALID_MAINTENANCE_TRANSITIONS,
    MaintenanceRequest,
    MaintenanceStatus,
    Urgency,
)

__all__ = [
    "VALID_MAINTENANCE_TRANSITIONS",
    "MaintenanceRequest",
    "MaintenanceStatus",
    "Urgency",
]
