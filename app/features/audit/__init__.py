"""Audit trail of business actions (system log)."""

from app.features.audit.models import SystemLog
from app.features.audit.service import AuditService

__all__ = ["AuditService", "SystemLog"]
