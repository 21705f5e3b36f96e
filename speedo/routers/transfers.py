"""
Transfers router — send money and read transfer history.

Endpoints:
  POST /transfers                — Send to an account number
  POST /transfers/username       — Send to a user by username
  GET  /transfers/history        — Everything the caller sent or received
  GET  /transfers/exchange-rate  — Quote the rate between two currencies

The sender always pays from their own account in `send_currency`. A
transfer whose amount exceeds that balance is declined with 422, and the
declined attempt still appears in history with status=false.

The raw Authorization header is handed to the engine, which does its own
prefix stripping and session check.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.database import get_db
from speedo.dependencies import get_bearer_token, get_exchange_rate_provider, get_transfer_engine
from speedo.models.currency import Currency
from speedo.schemas.transfer import (
    ExchangeRateResponse,
    TransferHistoryResponse,
    TransferRequest,
    TransferResponse,
    UsernameTransferRequest,
)
from speedo.services.exchange_service import ExchangeRateProvider
from speedo.services.transfer_service import TransferEngine

router = APIRouter()


@router.post(
    "",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer money to an account number",
)
async def transfer_to_account(
    request: TransferRequest,
    token: str = Depends(get_bearer_token),
    engine: TransferEngine = Depends(get_transfer_engine),
    db: AsyncSession = Depends(get_db),
):
    """
    Send money to another account by its account number.

    - **account_number**: The receiver's account (any user, any currency)
    - **amount**: Positive decimal with up to 2 places, in send_currency
    - **send_currency**: You must hold an account in this currency

    If the receiver's account is in a different currency, the credited
    amount is converted and rounded half-even to 2 places.
    """
    txn = await engine.transfer(
        db=db,
        token=token,
        account_number=request.account_number,
        amount=request.amount,
        send_currency=request.send_currency,
    )
    return TransferResponse.from_transaction(txn)


@router.post(
    "/username",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer money to a username",
)
async def transfer_to_username(
    request: UsernameTransferRequest,
    token: str = Depends(get_bearer_token),
    engine: TransferEngine = Depends(get_transfer_engine),
    db: AsyncSession = Depends(get_db),
):
    """
    Send money to a user by username, into their account in send_currency.
    """
    txn = await engine.transfer_to_username(
        db=db,
        token=token,
        username=request.username,
        amount=request.amount,
        send_currency=request.send_currency,
    )
    return TransferResponse.from_transaction(txn)


@router.get(
    "/history",
    response_model=TransferHistoryResponse,
    summary="List sent and received transfers",
)
async def transfer_history(
    token: str = Depends(get_bearer_token),
    engine: TransferEngine = Depends(get_transfer_engine),
    db: AsyncSession = Depends(get_db),
):
    """
    Sent transfers first, then received ones, each in storage order.
    Sort client-side if a single timeline is needed.
    """
    transactions = await engine.history(db=db, token=token)
    return TransferHistoryResponse(
        transactions=[TransferResponse.from_transaction(txn) for txn in transactions]
    )


@router.get(
    "/exchange-rate",
    response_model=ExchangeRateResponse,
    summary="Quote an exchange rate",
)
async def exchange_rate(
    from_currency: Currency = Query(...),
    to_currency: Currency = Query(...),
    rates: ExchangeRateProvider = Depends(get_exchange_rate_provider),
):
    """Multiply an amount in from_currency by `rate` to get to_currency."""
    return ExchangeRateResponse(
        from_currency=from_currency,
        to_currency=to_currency,
        rate=rates.rate(from_currency, to_currency),
    )
