"""Service layer for login sessions.

Tokens are opaque random strings; only their SHA-256 digest is stored, so a
leaked database cannot be replayed as bearer tokens.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import UnauthorizedError
from app.core.logging import get_logger
from app.core.security import generate_token, hash_token, verify_password_async
from app.features.audit.service import AuditService
from app.features.auth.models import AuthSession
from app.features.auth.schemas import LoginRequest, LoginResponse
from app.features.employees.models import MANAGEMENT_ROLES, User
from app.features.employees.schemas import UserResponse
from app.features.notifications.telegram import TelegramNotifier
from app.features.stores.models import Store
from app.shared.models import utcnow

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


@dataclass(frozen=True)
class ClientInfo:
    """Where a request came from, for audit entries."""

    ip_address: str | None = None
    user_agent: str | None = None


def redirect_url_for(role: str) -> str:
    """Landing page for a role: management goes to /admin."""
    return "/admin" if role in MANAGEMENT_ROLES else "/employee"


class AuthService:
    """Login, token resolution and logout."""

    def __init__(self) -> None:
        """Initialize auth service."""
        self.settings = get_settings()
        self.audit = AuditService()

    async def authenticate(self, db: AsyncSession, username: str, password: str) -> User:
        """Check credentials.

        Unknown users, inactive users and wrong passwords all produce the
        same error.

        Args:
            db: Database session.
            username: Login name.
            password: Plain-text password.

        Returns:
            The authenticated user.

        Raises:
            UnauthorizedError: If the credentials are not valid.
        """
        stmt = select(User).where(User.username == username)
        user = (await db.execute(stmt)).scalar_one_or_none()

        if user is None or not user.is_active:
            logger.warning("auth.login_failed", username=username, reason="unknown_or_inactive")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if not await verify_password_async(password, user.password_hash):
            logger.warning("auth.login_failed", username=username, reason="bad_password")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        return user

    async def create_session(
        self,
        db: AsyncSession,
        user: User,
        client: ClientInfo | None = None,
    ) -> tuple[str, AuthSession]:
        """Issue a new bearer token for a user.

        Args:
            db: Database session.
            user: Token owner.
            client: Request origin.

        Returns:
            Tuple of (raw token, stored session).
        """
        client = client or ClientInfo()
        token = generate_token()
        session = AuthSession(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=utcnow() + timedelta(hours=self.settings.auth_token_ttl_hours),
            ip_address=client.ip_address,
            user_agent=client.user_agent[:255] if client.user_agent else None,
        )
        db.add(session)
        await db.flush()
        return token, session

    async def login(
        self,
        db: AsyncSession,
        request: LoginRequest,
        client: ClientInfo,
        notifier: TelegramNotifier,
    ) -> LoginResponse:
        """Authenticate, issue a token, audit and notify.

        Args:
            db: Database session.
            request: Credentials.
            client: Request origin.
            notifier: Telegram notifier for the login record.

        Returns:
            Token, expiry, landing page and user.
        """
        user = await self.authenticate(db, request.username, request.password)
        token, session = await self.create_session(db, user, client)

        await self.audit.record(
            db,
            action="user_login",
            user_id=user.id,
            target_type="user",
            target_id=user.id,
            details=f"{user.name} logged in",
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info("auth.login_succeeded", user_id=user.id, role=user.role)

        store_name = None
        if user.store_id is not None:
            store = await db.get(Store, user.store_id)
            store_name = store.name if store else None
        await notifier.notify_login(
            name=user.name,
            username=user.username,
            role=user.role,
            at=utcnow().astimezone(self.settings.tzinfo),
            store_name=store_name,
            ip_address=client.ip_address,
        )

        return LoginResponse(
            token=token,
            expires_at=session.expires_at,
            redirect_url=redirect_url_for(user.role),
            user=UserResponse.model_validate(user),
        )

    async def resolve_token(self, db: AsyncSession, token: str) -> User:
        """Find the active user behind a bearer token.

        Args:
            db: Database session.
            token: Raw bearer token.

        Returns:
            The token owner.

        Raises:
            UnauthorizedError: If the token is unknown, expired or revoked,
                or its owner is inactive.
        """
        stmt = select(AuthSession).where(AuthSession.token_hash == hash_token(token))
        session = (await db.execute(stmt)).scalar_one_or_none()
        now = utcnow()

        if session is None or not session.is_valid(now):
            raise UnauthorizedError("Invalid or expired token")

        user = await db.get(User, session.user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("Account is disabled")

        session.last_seen_at = now
        return user

    async def logout(self, db: AsyncSession, token: str, client: ClientInfo) -> None:
        """Revoke the presented token."""
        stmt = select(AuthSession).where(AuthSession.token_hash == hash_token(token))
        session = (await db.execute(stmt)).scalar_one_or_none()
        if session is None or session.revoked_at is not None:
            return

        session.revoked_at = utcnow()
        await self.audit.record(
            db,
            action="user_logout",
            user_id=session.user_id,
            target_type="user",
            target_id=session.user_id,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        logger.info("auth.logout", user_id=session.user_id)

    async def revoke_user_sessions(self, db: AsyncSession, user_id: int) -> None:
        """Revoke every open session of a user (on deactivation)."""
        await db.execute(
            update(AuthSession)
            .where(AuthSession.user_id == user_id, AuthSession.revoked_at.is_(None))
            .values(revoked_at=utcnow())
        )
