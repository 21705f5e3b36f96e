"""
User model — the authenticated identity and the party to every transfer.

Each User has a login credential (email + hashed password), a public
username that other users can send money to, and display details
(first/last name, phone number). A user owns zero or more Accounts, at most
one per currency.

Transactions reference users, not accounts: the journal records who sent
money to whom, in which currency, and whether it settled.

The password is stored as an Argon2id hash — never in plaintext.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from speedo.database import Base


class User(Base):
    __tablename__ = "users"

    # Random UUIDs, so user ids cannot be enumerated
    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Login identifier
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    # Public handle, used by the send-to-username transfer
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    phone_number: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )

    # Argon2id hash
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Inactive users cannot log in; their accounts and history are kept
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
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
    accounts: Mapped[list["Account"]] = relationship(
        back_populates="user",
    )
