"""
Session service — validates bearer tokens and manages login sessions.

A token is accepted when:
  1. It is a well-formed JWT signed with our SECRET_KEY and not expired
  2. A session row exists for its SHA-256 digest and has not expired

Signup and login open a session; logout closes it. Closing a session
revokes the token immediately, even though its JWT signature stays valid
until "exp".

Prefix handling:
  Callers pass the raw Authorization header value. strip_bearer_prefix()
  removes a "Bearer " scheme (any case) if present and leaves anything
  else untouched — a bare token, an empty string, or a value shorter than
  the prefix.

Consistency note:
  exists() and user_id_for() are separate reads. A session revoked between
  the two calls can still complete the one request already in flight.
"""

import uuid
from datetime import datetime, timezone

from jose import JWTError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.exceptions import UnauthorizedError
from speedo.logging_config import get_logger
from speedo.models.session import UserSession
from speedo.models.user import User
from speedo.security import create_access_token, decode_access_token, token_digest

logger = get_logger(__name__)

BEARER_PREFIX = "bearer "


def strip_bearer_prefix(raw: str | None) -> str:
    """Return the token with any "Bearer " scheme prefix removed."""
    if not raw:
        return ""
    value = raw.strip()
    if value[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        value = value[len(BEARER_PREFIX):].strip()
    return value


class SessionAuthenticator:
    """Token validation and session bookkeeping backed by the sessions table."""

    async def _live_session(self, db: AsyncSession, token: str) -> UserSession | None:
        if not token:
            return None
        try:
            decode_access_token(token)
        except JWTError:
            return None

        result = await db.execute(
            select(UserSession)
            .where(UserSession.token_digest == token_digest(token))
            .where(UserSession.expires_at > datetime.now(timezone.utc))
        )
        return result.scalar_one_or_none()

    async def exists(self, db: AsyncSession, token: str) -> bool:
        """True iff the token denotes a currently valid session."""
        return await self._live_session(db, token) is not None

    async def user_id_for(self, db: AsyncSession, token: str) -> uuid.UUID:
        """
        Resolve the user that owns a session.

        Raises:
            UnauthorizedError: If the token is not a valid session.
        """
        session = await self._live_session(db, token)
        if session is None:
            raise UnauthorizedError()
        return session.user_id

    async def authenticate(self, db: AsyncSession, raw_token: str | None) -> uuid.UUID:
        """
        Strip the scheme prefix, check the session, and return its user id.

        This is the first step of every authenticated entry point.
        """
        token = strip_bearer_prefix(raw_token)
        if not await self.exists(db, token):
            raise UnauthorizedError()
        return await self.user_id_for(db, token)

    async def open_session(self, db: AsyncSession, user: User) -> str:
        """Issue a new token for the user and record its session row."""
        token, expires_at = create_access_token(data={"sub": str(user.id)})
        db.add(
            UserSession(
                token_digest=token_digest(token),
                user_id=user.id,
                expires_at=expires_at,
            )
        )
        await db.flush()
        logger.info("Opened session for user %s", user.id)
        return token

    async def close_session(self, db: AsyncSession, raw_token: str | None) -> None:
        """Revoke a session. Unknown tokens are ignored."""
        token = strip_bearer_prefix(raw_token)
        if not token:
            return
        await db.execute(
            delete(UserSession).where(UserSession.token_digest == token_digest(token))
        )
        await db.flush()


# Shared default instance, served by dependencies.get_session_authenticator
session_authenticator = SessionAuthenticator()
