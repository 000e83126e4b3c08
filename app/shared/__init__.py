"""Building blocks shared by the feature slices: UTC timestamps and pagination."""

from app.shared.models import TimestampMixin, UTCDateTime, utcnow
from app.shared.schemas import PaginatedResponse, PaginationParams

__all__ = [
    "PaginatedResponse",
    "PaginationParams",
    "TimestampMixin",
    "UTCDateTime",
    "utcnow",
]
