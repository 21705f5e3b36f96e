"""
Authentication service — signup, login and logout business logic.

Signup flow:
  1. Check the email and username are free
  2. Hash the password with Argon2id
  3. Create the User
  4. Open a session so the user is logged in immediately

Login flow:
  1. Look up user by email
  2. Verify password against stored hash
  3. Open a session

Logout closes the caller's session, revoking the token.

Security notes:
  - Login returns the same error for "wrong password" and "email not found"
    to prevent user enumeration attacks
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.exceptions import DuplicateEmailError, DuplicateUsernameError, InvalidCredentialsError
from speedo.models.user import User
from speedo.security import hash_password, verify_password
from speedo.services.session_service import SessionAuthenticator


async def signup(
    db: AsyncSession,
    authenticator: SessionAuthenticator,
    email: str,
    username: str,
    password: str,
    first_name: str,
    last_name: str,
    phone_number: str | None = None,
) -> tuple[User, str]:
    """
    Register a new user and open their first session.

    Returns:
        Tuple of (User instance, bearer token).

    Raises:
        DuplicateEmailError: If the email is already registered.
        DuplicateUsernameError: If the username is taken.
    """
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise DuplicateEmailError(email)

    result = await db.execute(select(User).where(User.username == username))
    if result.scalar_one_or_none():
        raise DuplicateUsernameError(username)

    user = User(
        email=email,
        username=username,
        hashed_password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        phone_number=phone_number,
    )
    db.add(user)
    # Flush to get the user.id assigned (needed for the session FK)
    await db.flush()

    token = await authenticator.open_session(db, user)
    return user, token


async def login(
    db: AsyncSession,
    authenticator: SessionAuthenticator,
    email: str,
    password: str,
) -> tuple[User, str]:
    """
    Authenticate a user and open a session.

    Raises:
        InvalidCredentialsError: If email doesn't exist or password is wrong.
    """
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    # Same error for every case — prevents user enumeration
    if not user:
        raise InvalidCredentialsError()

    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()

    if not user.is_active:
        raise InvalidCredentialsError()

    token = await authenticator.open_session(db, user)
    return user, token


async def logout(
    db: AsyncSession,
    authenticator: SessionAuthenticator,
    raw_token: str | None,
) -> None:
    await authenticator.close_session(db, raw_token)
