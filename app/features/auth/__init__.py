"""Authentication: bcrypt passwords, opaque bearer-token sessions, role checks."""

from app.features.auth.models import AuthSession

__all__ = ["AuthSession"]
