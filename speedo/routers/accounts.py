"""
Accounts router — open and list the caller's currency accounts.

Endpoints:
  POST /accounts  — Open an account in a currency (one per currency)
  GET  /accounts  — List own accounts
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.database import get_db
from speedo.dependencies import get_current_user
from speedo.models.user import User
from speedo.schemas.account import AccountCreateRequest, AccountResponse
from speedo.services import account_service

router = APIRouter()


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a new account",
)
async def open_account(
    request: AccountCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Open an account in the requested currency.

    The account gets a random 10-digit account number and the configured
    opening balance. A second account in the same currency returns 409.
    """
    return await account_service.open_account(
        db=db,
        user_id=user.id,
        currency=request.currency,
    )


@router.get(
    "",
    response_model=list[AccountResponse],
    summary="List your accounts",
)
async def list_accounts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List all accounts owned by the authenticated user."""
    return await account_service.get_accounts(db=db, user_id=user.id)
