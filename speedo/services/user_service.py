"""
User service — profile reads and partial updates.

Email and username are both unique, so changing either checks that no
other user already holds the new value. Sessions are keyed by user id,
so an email change does not affect existing logins.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.exceptions import DuplicateEmailError, DuplicateUsernameError
from speedo.models.user import User

# Columns that cannot be cleared; a null for one of these is ignored
REQUIRED_FIELDS = {"email", "username", "first_name", "last_name"}


async def update_profile(db: AsyncSession, user: User, updates: dict) -> User:
    """
    Apply a partial update to a user's profile.

    Only keys present in `updates` are changed (PATCH semantics). Nulls
    for required fields are skipped.

    Raises:
        DuplicateEmailError: If the new email belongs to someone else.
        DuplicateUsernameError: If the new username belongs to someone else.
    """
    updates = {
        field: value
        for field, value in updates.items()
        if value is not None or field not in REQUIRED_FIELDS
    }

    new_email = updates.get("email")
    if new_email is not None and new_email != user.email:
        result = await db.execute(select(User).where(User.email == new_email))
        if result.scalar_one_or_none() is not None:
            raise DuplicateEmailError(new_email)

    new_username = updates.get("username")
    if new_username is not None and new_username != user.username:
        result = await db.execute(select(User).where(User.username == new_username))
        if result.scalar_one_or_none() is not None:
            raise DuplicateUsernameError(new_username)

    for field, value in updates.items():
        setattr(user, field, value)

    await db.flush()
    return user
