"""
Pydantic schemas for the user profile.

hashed_password is never part of any response schema.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserResponse(BaseModel):
    """Public representation of the authenticated user's profile."""
    id: uuid.UUID
    email: EmailStr
    username: str
    first_name: str
    last_name: str
    phone_number: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserUpdateRequest(BaseModel):
    """
    Request body for PATCH /users/me (all fields optional).

    A null email, username or name is treated as "leave unchanged";
    a null phone_number clears it.
    """
    email: EmailStr | None = None
    username: str | None = Field(None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone_number: str | None = Field(None, max_length=20)
