"""
Transaction model — the append-only journal of transfer attempts.

Every call to the transfer engine that gets as far as the balance check
writes exactly one row here:

  - status=True:  the transfer settled; balances moved in the same
                  database transaction as this insert
  - status=False: the sender lacked funds; no balance moved, but the
                  attempt is still on record for auditing

Key fields:
  - sender_id / receiver_id: the users on either side (indexed, since
    history is read by both)
  - amount: the sender-side amount, in the sender's currency (always
    positive). The receiver's credit may differ after conversion.
  - currency: the sender's currency at the time of the transfer

Rows are never updated or deleted.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from speedo.database import Base
from speedo.models.currency import Currency
from speedo.models.money import Money


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    sender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    receiver_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )

    currency: Mapped[Currency] = mapped_column(
        Enum(Currency),
        nullable=False,
    )

    # True = settled, False = declined for insufficient funds
    status: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
