"""Password hashing and bearer token helpers."""

import asyncio
import hashlib
import secrets

import bcrypt

from app.core.config import get_settings

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using the configured cost factor."""
    salt = bcrypt.gensalt(rounds=get_settings().auth_bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash.

    Returns False for malformed hashes and over-long passwords.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


async def hash_password_async(password: str) -> str:
    """Hash a password in a worker thread so the event loop is not blocked."""
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, password_hash: str) -> bool:
    """Verify a password in a worker thread so the event loop is not blocked."""
    return await asyncio.to_thread(verify_password, password, password_hash)


def generate_token() -> str:
    """Generate an opaque URL-safe bearer token (256 bits)."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to look up a bearer token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
