"""
Pydantic schemas for Account endpoints.

Balances are Decimal and serialize as strings ("100.00"), so no client
ever sees a binary float for money.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from speedo.models.currency import Currency


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts."""
    currency: Currency = Field(description="Currency of the new account (one per currency)")


class AccountResponse(BaseModel):
    """Public representation of an account."""
    id: uuid.UUID
    account_number: str
    currency: Currency
    balance: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}
