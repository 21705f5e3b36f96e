"""
Pydantic schemas for transfer endpoints.

Amounts are positive decimals with at most two fractional digits, in the
send currency. Send them as JSON strings ("40.00") to avoid any float
parsing on the way in.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from speedo.models.currency import Currency
from speedo.models.transaction import Transaction


class TransferRequest(BaseModel):
    """Request body for POST /transfers."""
    account_number: str = Field(min_length=1, max_length=20)
    amount: Decimal = Field(gt=0, max_digits=15, decimal_places=2)
    send_currency: Currency


class UsernameTransferRequest(BaseModel):
    """Request body for POST /transfers/username."""
    username: str = Field(min_length=1, max_length=50)
    amount: Decimal = Field(gt=0, max_digits=15, decimal_places=2)
    send_currency: Currency


class TransferResponse(BaseModel):
    """A journal entry, as returned by transfers and history."""
    transaction_id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    amount: Decimal
    currency: Currency
    status: bool
    timestamp: datetime

    @classmethod
    def from_transaction(cls, txn: Transaction) -> "TransferResponse":
        return cls(
            transaction_id=txn.id,
            sender_id=txn.sender_id,
            receiver_id=txn.receiver_id,
            amount=txn.amount,
            currency=txn.currency,
            status=txn.status,
            timestamp=txn.created_at,
        )


class TransferHistoryResponse(BaseModel):
    """Response body for GET /transfers/history."""
    transactions: list[TransferResponse]


class ExchangeRateResponse(BaseModel):
    """Response body for GET /transfers/exchange-rate."""
    from_currency: Currency
    to_currency: Currency
    rate: Decimal
