"""
Users router — profile endpoints for the authenticated user.

Endpoints:
  GET   /users/me  — Get current user's profile
  PATCH /users/me  — Update profile fields
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from speedo.database import get_db
from speedo.dependencies import get_current_user
from speedo.models.user import User
from speedo.schemas.user import UserResponse, UserUpdateRequest
from speedo.services import user_service

router = APIRouter()


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user's profile",
)
async def get_my_profile(
    user: User = Depends(get_current_user),
):
    return user


@router.patch(
    "/me",
    response_model=UserResponse,
    summary="Update profile fields",
)
async def update_my_profile(
    updates: UserUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update the authenticated user's profile.

    Only provided fields are updated — omitted fields remain unchanged.
    A new email or username must not belong to another user (409).
    Sending null for a required field leaves it unchanged.
    """
    # exclude_unset=True only includes fields the client explicitly sent
    return await user_service.update_profile(
        db=db,
        user=user,
        updates=updates.model_dump(exclude_unset=True),
    )
