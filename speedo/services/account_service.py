"""
Account service — opening and looking up currency accounts.

This module handles:
  - Account opening (unique account number, one account per currency)
  - Account listing for the authenticated user
  - The two lookups the transfer engine relies on:
      * by account number (the receiver)
      * by (user, currency) (the sender)

Ownership enforcement:
  get_accounts() is scoped by user_id, which always comes from the
  authenticated session. Lookups by account number are deliberately
  unscoped — any user may send money to any account number.
"""

import random
import string
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.config import settings
from speedo.exceptions import DuplicateAccountError
from speedo.logging_config import get_logger
from speedo.models.account import Account
from speedo.models.currency import Currency

logger = get_logger(__name__)


def _generate_account_number() -> str:
    """
    Generate a random 10-digit account number.

    Random rather than sequential, so account numbers cannot be guessed
    by counting.
    """
    return "".join(random.choices(string.digits, k=10))


async def open_account(
    db: AsyncSession,
    user_id: uuid.UUID,
    currency: Currency,
) -> Account:
    """
    Open a new account for a user in the given currency.

    Generates a unique account number and credits the configured opening
    balance (INITIAL_ACCOUNT_BALANCE).

    Raises:
        DuplicateAccountError: If the user already holds an account in
                               this currency.
    """
    existing = await get_account_for_currency(db, user_id, currency)
    if existing is not None:
        raise DuplicateAccountError(Currency(currency).value)

    # Generate a unique account number (retry if collision, extremely unlikely)
    for _ in range(10):
        account_number = _generate_account_number()
        if await get_account_by_number(db, account_number) is None:
            break
    else:
        raise RuntimeError("Failed to generate a unique account number")

    account = Account(
        user_id=user_id,
        currency=currency,
        account_number=account_number,
        balance=settings.INITIAL_ACCOUNT_BALANCE,
    )
    db.add(account)
    await db.flush()
    logger.info("Opened %s account %s for user %s", account.currency.value, account.id, user_id)
    return account


async def get_accounts(db: AsyncSession, user_id: uuid.UUID) -> list[Account]:
    """List all accounts belonging to a user."""
    result = await db.execute(
        select(Account).where(Account.user_id == user_id)
    )
    return list(result.scalars().all())


async def get_account_by_number(db: AsyncSession, account_number: str) -> Account | None:
    result = await db.execute(
        select(Account).where(Account.account_number == account_number)
    )
    return result.scalar_one_or_none()


async def get_account_for_currency(
    db: AsyncSession,
    user_id: uuid.UUID,
    currency: Currency,
) -> Account | None:
    """Return the user's account in a currency, or None. At most one can exist."""
    result = await db.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .where(Account.currency == currency)
    )
    return result.scalar_one_or_none()
