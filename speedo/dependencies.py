"""
FastAPI dependencies for authentication and the transfer engine.

Dependencies are reusable functions that FastAPI injects into route handlers:

  get_bearer_token            (Authorization header -> raw token string)
  get_session_authenticator   (-> SessionAuthenticator)
  get_exchange_rate_provider  (-> ExchangeRateProvider)
  get_transfer_engine         (authenticator + rates -> TransferEngine)
  get_current_user            (token -> User)

Tests swap the rate provider (or the authenticator) through
app.dependency_overrides without touching the engine.

The Authorization header is passed through raw. Stripping the "Bearer "
prefix is the session service's job, so every entry point handles a
missing or malformed prefix the same way.
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.database import get_db
from speedo.exceptions import UnauthorizedError
from speedo.models.user import User
from speedo.services.exchange_service import ExchangeRateProvider, default_rate_provider
from speedo.services.session_service import SessionAuthenticator, session_authenticator
from speedo.services.transfer_service import TransferEngine


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    """Return the raw Authorization header value ("" when absent)."""
    return authorization or ""


def get_session_authenticator() -> SessionAuthenticator:
    return session_authenticator


def get_exchange_rate_provider() -> ExchangeRateProvider:
    return default_rate_provider


def get_transfer_engine(
    authenticator: SessionAuthenticator = Depends(get_session_authenticator),
    rates: ExchangeRateProvider = Depends(get_exchange_rate_provider),
) -> TransferEngine:
    return TransferEngine(authenticator=authenticator, rates=rates)


async def get_current_user(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
    authenticator: SessionAuthenticator = Depends(get_session_authenticator),
) -> User:
    """
    Resolve the authenticated User for non-transfer endpoints.

    Raises:
        UnauthorizedError: If the token is not a live session, or the
                           user is missing or deactivated.
    """
    user_id = await authenticator.authenticate(db, token)
    user = await db.get(User, user_id)

    if user is None or not user.is_active:
        raise UnauthorizedError()

    return user
