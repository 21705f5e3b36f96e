"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors (like InsufficientFundsError)
without importing HTTP concepts. The handlers registered here translate them
into HTTP responses with a consistent body: {"detail": ..., "error_type": ...}.

No store- or framework-specific exception (SQLAlchemy, JOSE) is allowed to
cross the transfer engine boundary; the engine converts them into one of
the errors below.

Exception hierarchy:
    BankAPIError (base)
    ├── UnauthorizedError             — missing/invalid/expired session token
    ├── InvalidCredentialsError       — wrong email or password at login
    ├── UserNotFoundError             — authenticated user no longer exists
    ├── ReceiverAccountNotFoundError  — no account with that number / currency
    ├── SenderAccountNotFoundError    — sender holds no account in that currency
    ├── ReceiverUserNotFoundError     — receiver account has no owner / unknown username
    ├── InvalidAmountError            — amount not positive or finer than 0.01
    ├── InsufficientFundsError        — balance below the transfer amount
    ├── RateUnavailableError          — no exchange rate for a currency pair
    ├── PersistenceFailureError       — the store could not commit
    ├── DuplicateEmailError           — signup with an existing email
    ├── DuplicateUsernameError        — signup/profile update with a taken username
    └── DuplicateAccountError         — second account in the same currency
"""

from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class BankAPIError(Exception):
    """Base exception for all domain errors."""

    status_code = 400
    error_type = "bank_api_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

class UnauthorizedError(BankAPIError):
    """Raised when the bearer token does not denote a live session."""

    status_code = 401
    error_type = "unauthorized"

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(detail)


class InvalidCredentialsError(BankAPIError):
    """Raised when login credentials are incorrect."""

    status_code = 401
    error_type = "invalid_credentials"

    def __init__(self):
        super().__init__("Invalid email or password")


# ---------------------------------------------------------------------------
# Resolution failures
# ---------------------------------------------------------------------------

class UserNotFoundError(BankAPIError):
    status_code = 404
    error_type = "user_not_found"

    def __init__(self, detail: str = "User not found"):
        super().__init__(detail)


class ReceiverAccountNotFoundError(BankAPIError):
    status_code = 404
    error_type = "receiver_account_not_found"

    def __init__(self, detail: str = "Could not find receiver's account"):
        super().__init__(detail)


class SenderAccountNotFoundError(BankAPIError):
    """Raised when the sender holds no account in the requested send currency."""

    status_code = 404
    error_type = "sender_account_not_found"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"You don't have an account in {currency}")


class ReceiverUserNotFoundError(BankAPIError):
    status_code = 404
    error_type = "receiver_user_not_found"

    def __init__(self, detail: str = "Could not find receiver"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Transfer outcomes
# ---------------------------------------------------------------------------

class InvalidAmountError(BankAPIError):
    """Raised when a transfer amount is not positive or has more than two decimal places."""

    status_code = 422
    error_type = "invalid_amount"

    def __init__(self, amount: Decimal):
        self.amount = amount
        super().__init__(
            f"Amount must be positive with at most two decimal places, got {amount}"
        )


class InsufficientFundsError(BankAPIError):
    """
    Raised when a transfer amount exceeds the sender's balance.

    A declined Transaction has already been written when this is raised.

    Attributes:
        account_number: The sender account that lacks funds.
        requested: The amount the user tried to send.
        available: The balance of the account at the time of the check.
    """

    status_code = 422
    error_type = "insufficient_funds"

    def __init__(self, account_number: str, requested: Decimal, available: Decimal):
        self.account_number = account_number
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient funds: requested {requested}, available {available}"
        )


class RateUnavailableError(BankAPIError):
    """Raised when no exchange rate exists for a currency pair. Safe to retry."""

    status_code = 503
    error_type = "rate_unavailable"

    def __init__(self, from_currency: str, to_currency: str):
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(
            f"Exchange rate from {from_currency} to {to_currency} is unavailable"
        )


class PersistenceFailureError(BankAPIError):
    """Raised when the store could not commit. Nothing was persisted; safe to retry."""

    status_code = 503
    error_type = "persistence_failure"

    def __init__(self, detail: str = "The transfer could not be completed, please retry"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------

class DuplicateEmailError(BankAPIError):
    status_code = 409
    error_type = "duplicate_email"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class DuplicateUsernameError(BankAPIError):
    status_code = 409
    error_type = "duplicate_username"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username {username} is already taken")


class DuplicateAccountError(BankAPIError):
    """Raised when a user already holds an account in the requested currency."""

    status_code = 409
    error_type = "duplicate_account"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"You already have an account in {currency}")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Every BankAPIError subclass carries its own status code and error_type,
    so one handler covers the hierarchy. InsufficientFundsError gets its own
    handler to expose the requested/available amounts.

    This is called once during app startup in main.py.
    """

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(
        request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,  # the request was valid but business rules reject it
            content={
                "detail": exc.detail,
                "error_type": exc.error_type,
                "requested": str(exc.requested),
                "available": str(exc.available),
            },
        )

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(
        request: Request, exc: UnauthorizedError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_type": exc.error_type},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(BankAPIError)
    async def bank_api_error_handler(
        request: Request, exc: BankAPIError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_type": exc.error_type},
        )
