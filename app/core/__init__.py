"""Core infrastructure: settings, database, logging, errors and password hashing."""

from app.core.config import Settings, get_settings
from app.core.database import Base, get_db
from app.core.exceptions import StoreOpsError
from app.core.logging import get_logger, request_id_ctx, user_id_ctx

__all__ = [
    "Base",
    "Settings",
    "StoreOpsError",
    "get_db",
    "get_logger",
    "get_settings",
    "request_id_ctx",
    "user_id_ctx",
]
