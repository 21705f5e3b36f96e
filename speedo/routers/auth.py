"""
Authentication router — signup, login and logout endpoints.

Signup and login need no token. Both answer with a fresh bearer token.

Endpoints:
  POST /auth/signup  — create a user, logged in straight away
  POST /auth/login   — exchange email and password for a token
  POST /auth/logout  — revoke the token in the Authorization header

Notes:
  - Passwords are hashed in the service layer and never logged.
  - Tokens appear only in response bodies and are never logged; the
    sessions table stores their SHA-256 digest, not the token.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.database import get_db
from speedo.dependencies import get_bearer_token, get_session_authenticator
from speedo.schemas.auth import (
    UserSignupRequest,
    UserLoginRequest,
    TokenResponse,
    SignupResponse,
)
from speedo.services import auth_service
from speedo.services.session_service import SessionAuthenticator

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def signup(
    request: UserSignupRequest,
    db: AsyncSession = Depends(get_db),
    authenticator: SessionAuthenticator = Depends(get_session_authenticator),
):
    """
    Register a new user and log them in.

    - **email**: Login identifier, must be unused
    - **username**: Public handle other users can send money to
    - **password**: At least 8 characters
    - **first_name** / **last_name**: 1 to 100 characters each
    - **phone_number**: Optional
    """
    user, token = await auth_service.signup(
        db=db,
        authenticator=authenticator,
        email=request.email,
        username=request.username,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        phone_number=request.phone_number,
    )

    return SignupResponse(
        user_id=user.id,
        email=user.email,
        username=user.username,
        token=token,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
)
async def login(
    request: UserLoginRequest,
    db: AsyncSession = Depends(get_db),
    authenticator: SessionAuthenticator = Depends(get_session_authenticator),
):
    """
    Log in with email and password.

    Send the returned token on later requests as
    `Authorization: Bearer <token>`.
    """
    user, token = await auth_service.login(
        db=db,
        authenticator=authenticator,
        email=request.email,
        password=request.password,
    )

    return TokenResponse(token=token)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke the current token",
)
async def logout(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
    authenticator: SessionAuthenticator = Depends(get_session_authenticator),
):
    """End the caller's session. The token stops working immediately."""
    await auth_service.logout(db=db, authenticator=authenticator, raw_token=token)
