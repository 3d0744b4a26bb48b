"""User / identity-directory schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class UserSummary(BaseModel):
    """Public display data for a user (what other members see)."""

    id: uuid.UUID
    username: str
    name: str
    avatar_url: str | None = None

    model_config = {"from_attributes": True}


class UserResponse(UserSummary):
    email: str | None = None
    is_active: bool
    created_at: datetime


class UserUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    avatar_url: str | None = Field(None, max_length=500)
