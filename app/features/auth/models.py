"""Login session ORM model.

Only the SHA-256 digest of a bearer token is stored; the raw token is
returned once at login.
"""

from __future__ import annotations

import datetime

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin, UTCDateTime


class AuthSession(TimestampMixin, Base):
    """Bearer token session.

    Attributes:
        id: Primary key.
        user_id: Owner of the session.
        token_hash: SHA-256 hex digest of the bearer token.
        expires_at: Absolute expiry.
        revoked_at: Set on logout or account deactivation.
        last_seen_at: Last authenticated request.
        ip_address: Client address at login.
        user_agent: Client user agent at login.
    """

    __tablename__ = "auth_session"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id", ondelete="CASCADE"), index=True
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    expires_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime(), index=True)
    revoked_at: Mapped[datetime.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    last_seen_at: Mapped[datetime.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def is_valid(self, now: datetime.datetime) -> bool:
        """A session is usable until revoked or past its expiry."""
        return self.revoked_at is None and self.expires_at > now
