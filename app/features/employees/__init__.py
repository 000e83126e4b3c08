"""Employee accounts: CRUD, roles and headcount statistics."""

from app.features.employees.models import MANAGEMENT_ROLES, User, UserRole

__all__ = ["MANAGEMENT_ROLES", "User", "UserRole"]
