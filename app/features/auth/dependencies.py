"""FastAPI dependencies for authentication and role checks.

Usage:
    async def handler(user: CurrentUser, ...): ...
    async def handler(user: ManagementUser, ...): ...   # admin or manager
    async def handler(user: AdminUser, ...): ...        # admin only
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.logging import user_id_ctx
from app.core.middleware import client_ip
from app.features.auth.service import AuthService, ClientInfo
from app.features.employees.models import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False, description="Token from POST /auth/login")


def get_client_info(request: Request) -> ClientInfo:
    """Client address and user agent of the current request."""
    return ClientInfo(
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Extract the bearer token or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    return credentials.credentials


async def get_current_user(
    token: Annotated[str, Depends(get_bearer_token)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Resolve the bearer token to an active user.

    Raises:
        UnauthorizedError: If the token is missing, unknown, expired or revoked.
    """
    user = await AuthService().resolve_token(db, token)
    user_id_ctx.set(user.id)
    return user


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[User]]:
    """Build a dependency that only lets the given roles through.

    Args:
        roles: Allowed roles.

    Returns:
        Dependency returning the current user, or raising 403.
    """
    allowed = frozenset(role.value for role in roles)

    async def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role not in allowed:
            raise ForbiddenError(
                "Insufficient permissions",
                details={"required_roles": sorted(allowed), "role": user.role},
            )
        return user

    return dependency


CurrentUser = Annotated[User, Depends(get_current_user)]
ManagementUser = Annotated[User, Depends(require_roles(UserRole.ADMIN, UserRole.MANAGER))]
AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
Client = Annotated[ClientInfo, Depends(get_client_info)]
