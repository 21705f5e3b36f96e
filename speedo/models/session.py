"""
UserSession model — server-side record of a live login.

A signed JWT alone cannot be revoked before it expires. Each login
therefore also writes a session row keyed by the token's SHA-256 digest;
a token is only accepted while its row exists and has not expired.
Logging out deletes the row.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from speedo.database import Base


class UserSession(Base):
    __tablename__ = "sessions"

    token_digest: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
