"""
Password hashing, token signing, and token digests.

Passwords:
  Hashed with Argon2id through passlib's CryptContext. Only the hash is
  stored.

Tokens:
  HS256 JWTs signed with SECRET_KEY. The payload carries the user id
  ("sub"), a random token id ("jti") and an expiry ("exp"). A good
  signature alone is not enough to authenticate; the session service also
  requires a live row in the sessions table, which is what lets logout
  revoke a token early.

Digests:
  Session rows are keyed by SHA-256(token), so the database never holds a
  usable bearer token.
"""

import hashlib
import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from speedo.config import settings


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Return an Argon2id hash of the password."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> tuple[str, datetime]:
    """
    Sign a token for the given claims (which must include "sub").

    Adds "exp" (now + expires_delta, or ACCESS_TOKEN_EXPIRE_MINUTES) and a
    random "jti" so two logins never share a token.

    Returns:
        (token, expiry as an aware UTC datetime)
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, expire


def decode_access_token(token: str) -> dict:
    """
    Verify a token's signature and expiry and return its claims.

    Raises:
        JWTError: If the token is expired, tampered with, or invalid.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


# ---------------------------------------------------------------------------
# Digests
# ---------------------------------------------------------------------------


def token_digest(token: str) -> str:
    """Return the hex SHA-256 digest used as a session key."""
    return hashlib.sha256(token.encode()).hexdigest()
