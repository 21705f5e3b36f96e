"""
Account model — a currency-denominated balance owned by a User.

Each account has:
  - A unique account number (randomly generated 10-digit string), which is
    how other users address it when sending money
  - A currency from the closed Currency enum
  - A balance, exposed as Decimal and stored as integer minor units
    (see models/money.py)

One account per currency:
  A user may hold several accounts, but never two in the same currency.
  The (user_id, currency) UNIQUE constraint enforces this at the database
  level, and it is what lets the transfer engine resolve the sender's
  account from (user, send currency) alone.

Balance management:
  The balance is only changed by the transfer engine, inside the same
  database transaction that writes the settled Transaction row. A CHECK
  constraint also keeps it non-negative in the database.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, Enum, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from speedo.database import Base
from speedo.models.currency import Currency
from speedo.models.money import Money


class Account(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        CheckConstraint(
            "balance >= 0",
            name="ck_accounts_non_negative_balance",
        ),
        UniqueConstraint(
            "user_id",
            "currency",
            name="uq_accounts_user_currency",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Unique 10-digit account number (generated at creation time, never changes)
    account_number: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
    )

    currency: Mapped[Currency] = mapped_column(
        Enum(Currency),
        nullable=False,
    )

    balance: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0.00"),
    )

    # Owner of this account
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    user: Mapped["User"] = relationship(
        back_populates="accounts",
    )
