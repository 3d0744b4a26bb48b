"""Caller profile and user search endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.dependencies import get_current_user, get_db
from taskforge.models.user import User
from taskforge.schemas.user import UserResponse, UserSummary, UserUpdate
from taskforge.services import identity

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put("/me", response_model=UserResponse)
async def update_profile(
    body: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await identity.update_profile(db, user, name=body.name, avatar_url=body.avatar_url)
    return UserResponse.model_validate(user)


@router.get("/search", response_model=list[UserSummary])
async def search_users(
    username: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[UserSummary]:
    """Find users to invite by username fragment (excludes the caller)."""
    rows = await identity.search_users(db, username, exclude=user)
    return [UserSummary.model_validate(u) for u in rows]
