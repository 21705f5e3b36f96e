"""
Transfer service — the funds transfer engine.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It handles:
  - Authenticating the caller from a bearer token
  - Resolving sender and receiver accounts
  - Balance enforcement (no negative balances)
  - Currency conversion between sender and receiver accounts
  - Writing exactly one journal row per attempt, settled or declined
  - Reading a user's transfer history

Entry points:
  transfer()              — receiver addressed by account number
  transfer_to_username()  — receiver addressed by username, paid into their
                            account in the send currency
  history()               — everything the caller sent or received

Both transfer entry points only differ in how they find the receiver; the
balance check, conversion, mutation and journal write all live in
_settle().

Atomicity:
  Settlement (debit sender, credit receiver, insert the settled
  Transaction) is one database transaction, committed once. A declined
  attempt is a separate unit: the declined Transaction is inserted and
  committed on its own, then InsufficientFundsError is raised. Any
  SQLAlchemy error rolls the session back and surfaces as
  PersistenceFailureError, so a caller never sees a store-specific
  exception and never sees "success" without a journal row.
  Whatever the rate provider raises is rolled back and surfaced as
  RateUnavailableError.

Amounts:
  Both entry points reject an amount that is not positive or has more than
  two decimal places (InvalidAmountError) before touching the database, so
  the amount compared, debited and journalled is exactly the one given.

Locking:
  Both account rows are re-read with SELECT ... FOR UPDATE before the
  balance check, always in id order, so two transfers touching the same
  pair of accounts cannot deadlock and cannot both pass the check on a
  stale balance. Transfers on disjoint accounts take disjoint row locks.
  (On SQLite, FOR UPDATE is a no-op; database.py opens every transaction
  with BEGIN IMMEDIATE instead.)

Self-transfers:
  Sending to one of your own accounts (including the same account) is
  allowed. Same-account transfers leave the balance unchanged but are
  still journalled.
"""

import uuid
from contextlib import asynccontextmanager
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.exceptions import (
    InsufficientFundsError,
    InvalidAmountError,
    PersistenceFailureError,
    RateUnavailableError,
    ReceiverAccountNotFoundError,
    ReceiverUserNotFoundError,
    SenderAccountNotFoundError,
    UserNotFoundError,
)
from speedo.logging_config import get_logger
from speedo.models.account import Account
from speedo.models.currency import Currency, quantize
from speedo.models.transaction import Transaction
from speedo.models.user import User
from speedo.services import account_service
from speedo.services.exchange_service import ExchangeRateProvider, convert
from speedo.services.session_service import SessionAuthenticator

logger = get_logger(__name__)


def _checked_amount(amount) -> Decimal:
    """Return the amount as a Decimal, or raise if it is not a positive whole number of cents."""
    try:
        value = Decimal(amount)
        valid = value.is_finite() and value > 0 and value == quantize(value)
    except (TypeError, ValueError, ArithmeticError):
        valid = False
    if not valid:
        raise InvalidAmountError(amount)
    return value


@asynccontextmanager
async def _store_errors(db: AsyncSession):
    """Roll back and re-raise any store error as PersistenceFailureError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store error, rolling back: %s", exc.__class__.__name__, exc_info=True)
        try:
            await db.rollback()
        except SQLAlchemyError:
            logger.error("Rollback failed", exc_info=True)
        raise PersistenceFailureError() from exc


class TransferEngine:
    """
    Moves money between accounts on behalf of an authenticated user.

    Collaborators are injected so tests can supply deterministic rates
    or a stub authenticator.
    """

    def __init__(self, authenticator: SessionAuthenticator, rates: ExchangeRateProvider):
        self.authenticator = authenticator
        self.rates = rates

    # -----------------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------------

    async def transfer(
        self,
        db: AsyncSession,
        token: str | None,
        account_number: str,
        amount: Decimal,
        send_currency: Currency,
    ) -> Transaction:
        """
        Send `amount` of `send_currency` to the account with `account_number`.

        The sender pays from their own account in `send_currency`; if the
        receiver's account is in another currency, the credit is converted.

        Returns:
            The settled Transaction.

        Raises:
            InvalidAmountError: amount is not positive or has more than 2 places.
            UnauthorizedError: Token is not a live session.
            UserNotFoundError: The session's user no longer exists.
            ReceiverAccountNotFoundError: No account has that number.
            SenderAccountNotFoundError: Sender holds no account in send_currency.
            ReceiverUserNotFoundError: The receiver account has no owner.
            InsufficientFundsError: Balance too low (a declined row was written).
            RateUnavailableError: No rate for the currency pair, or the rate
                source failed.
            PersistenceFailureError: The store could not commit.
        """
        amount = _checked_amount(amount)
        send_currency = Currency(send_currency)
        async with _store_errors(db):
            sender = await self._authenticated_user(db, token)

            receiver_account = await account_service.get_account_by_number(db, account_number)
            if receiver_account is None:
                raise ReceiverAccountNotFoundError()

            sender_account = await account_service.get_account_for_currency(
                db, sender.id, send_currency
            )
            if sender_account is None:
                raise SenderAccountNotFoundError(send_currency.value)

            receiver = await db.get(User, receiver_account.user_id)
            if receiver is None:
                raise ReceiverUserNotFoundError()

            return await self._settle(
                db, sender, sender_account, receiver, receiver_account, amount, send_currency
            )

    async def transfer_to_username(
        self,
        db: AsyncSession,
        token: str | None,
        username: str,
        amount: Decimal,
        send_currency: Currency,
    ) -> Transaction:
        """
        Send `amount` of `send_currency` to a user by username.

        The money lands in the receiver's account in the same currency, so
        no conversion takes place. Raises the same errors as transfer().
        """
        amount = _checked_amount(amount)
        send_currency = Currency(send_currency)
        async with _store_errors(db):
            sender = await self._authenticated_user(db, token)

            result = await db.execute(select(User).where(User.username == username))
            receiver = result.scalar_one_or_none()
            if receiver is None:
                raise ReceiverUserNotFoundError(f"Could not find user {username}")

            receiver_account = await account_service.get_account_for_currency(
                db, receiver.id, send_currency
            )
            if receiver_account is None:
                raise ReceiverAccountNotFoundError(
                    f"{username} has no account in {send_currency.value}"
                )

            sender_account = await account_service.get_account_for_currency(
                db, sender.id, send_currency
            )
            if sender_account is None:
                raise SenderAccountNotFoundError(send_currency.value)

            return await self._settle(
                db, sender, sender_account, receiver, receiver_account, amount, send_currency
            )

    async def history(self, db: AsyncSession, token: str | None) -> list[Transaction]:
        """
        Every transaction the caller sent, followed by every one they received.

        Each half comes back in the store's natural order; no sort is
        applied across them. A transfer to oneself shows up in both halves.
        """
        async with _store_errors(db):
            user = await self._authenticated_user(db, token)

            sent = await db.execute(
                select(Transaction).where(Transaction.sender_id == user.id)
            )
            received = await db.execute(
                select(Transaction).where(Transaction.receiver_id == user.id)
            )
            return [*sent.scalars().all(), *received.scalars().all()]

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    async def _authenticated_user(self, db: AsyncSession, token: str | None) -> User:
        user_id = await self.authenticator.authenticate(db, token)
        user = await db.get(User, user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def _lock_accounts(
        self,
        db: AsyncSession,
        *account_ids: uuid.UUID,
    ) -> dict[uuid.UUID, Account]:
        """
        Re-read accounts with a row lock, in id order.

        populate_existing=True overwrites any balance already in the
        session's identity map with the value read under the lock.
        """
        result = await db.execute(
            select(Account)
            .where(Account.id.in_(set(account_ids)))
            .order_by(Account.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {account.id: account for account in result.scalars().all()}

    async def _settle(
        self,
        db: AsyncSession,
        sender: User,
        sender_account: Account,
        receiver: User,
        receiver_account: Account,
        amount: Decimal,
        send_currency: Currency,
    ) -> Transaction:
        locked = await self._lock_accounts(db, sender_account.id, receiver_account.id)
        source = locked.get(sender_account.id)
        dest = locked.get(receiver_account.id)
        if source is None:
            raise SenderAccountNotFoundError(send_currency.value)
        if dest is None:
            raise ReceiverAccountNotFoundError()

        if source.balance < amount:
            declined = Transaction(
                sender_id=sender.id,
                receiver_id=receiver.id,
                amount=amount,
                currency=send_currency,
                status=False,
            )
            db.add(declined)
            await db.commit()
            logger.info(
                "Declined transfer %s: %s %s requested from account %s, %s available",
                declined.id, amount, send_currency.value, source.id, source.balance,
            )
            raise InsufficientFundsError(
                account_number=source.account_number,
                requested=amount,
                available=source.balance,
            )

        credit = amount
        if send_currency != dest.currency:
            try:
                rate = self.rates.rate(send_currency, dest.currency)
            except RateUnavailableError:
                await db.rollback()
                raise
            except Exception as exc:
                logger.warning(
                    "Rate lookup %s->%s failed: %s",
                    send_currency.value, Currency(dest.currency).value, exc.__class__.__name__,
                )
                await db.rollback()
                raise RateUnavailableError(
                    send_currency.value, Currency(dest.currency).value
                ) from exc
            credit = convert(amount, rate)

        source.balance -= amount
        dest.balance += credit

        txn = Transaction(
            sender_id=sender.id,
            receiver_id=receiver.id,
            amount=amount,
            currency=send_currency,
            status=True,
        )
        db.add(txn)
        await db.commit()

        logger.info(
            "Settled transfer %s: %s %s from account %s, credited %s %s to account %s",
            txn.id, amount, send_currency.value, source.id,
            credit, Currency(dest.currency).value, dest.id,
        )
        return txn
