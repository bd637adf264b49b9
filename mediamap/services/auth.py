"""
Session-token authentication.

Passwords are hashed with passlib; a successful login stores a random
token in the ``sessions`` table and hands it to the client, which sends it
back as ``Authorization: Bearer <token>`` (or ``?token=`` for media links
opened directly in the browser). This attributes uploads to an owner; it is
not meant as a hardened security model.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mediamap.core.exceptions import ConflictException, UnauthorizedException
from mediamap.models import Session, User

logger = logging.getLogger(__name__)


# =============================================================================
# PASSWORD HASHING
# =============================================================================

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password for storage.

    Example:
        >>> hashed = hash_password("mypassword123")
        >>> hashed.startswith("$pbkdf2-sha256$")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# =============================================================================
# USERS AND SESSIONS
# =============================================================================

def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def register_user(db: AsyncSession, email: str, password: str) -> User:
    """Create a user account.

    Raises:
        ConflictException: If the email is already registered.
    """
    email = email.strip().lower()
    existing = await db.scalar(select(User).where(User.email == email))
    if existing is not None:
        raise ConflictException("User already exists", details={"email": email})

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    await db.flush()
    logger.info(f"Registered user {user.id}")
    return user


async def login(db: AsyncSession, email: str, password: str, ttl_days: int) -> Session:
    """Check credentials and open a new session.

    Raises:
        UnauthorizedException: If the email or password is wrong.
    """
    user = await db.scalar(select(User).where(User.email == email.strip().lower()))
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Login failed: invalid credentials")
        raise UnauthorizedException("Invalid credentials")

    session = Session(
        user_id=user.id,
        token=secrets.token_urlsafe(32),
        expires_at=_now() + timedelta(days=ttl_days),
    )
    db.add(session)
    await db.flush()
    return session


async def user_for_token(db: AsyncSession, token: Optional[str]) -> Optional[User]:
    """Return the user owning an unexpired session token, or None."""
    if not token:
        return None

    session = await db.scalar(select(Session).where(Session.token == token))
    if session is None:
        return None
    if _aware(session.expires_at) <= _now():
        logger.debug(f"Session {session.id} expired")
        return None
    return await db.get(User, session.user_id)


async def logout(db: AsyncSession, token: str) -> None:
    await db.execute(delete(Session).where(Session.token == token))
