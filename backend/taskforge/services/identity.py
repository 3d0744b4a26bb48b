"""Identity directory: resolve user ids to existence and display data."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.exceptions import NotFoundError, ValidationError
from taskforge.core.identifiers import as_uuid
from taskforge.models.user import User

logger = logging.getLogger(__name__)

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 10


async def find_user(db: AsyncSession, user_id: Any) -> User | None:
    return await db.get(User, as_uuid(user_id))


async def get_user(db: AsyncSession, user_id: Any) -> User:
    user = await find_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_user_by_username(db: AsyncSession, username: str) -> User:
    result = await db.execute(select(User).where(User.username == username.strip()))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def search_users(db: AsyncSession, fragment: str | None, exclude: Any) -> list[User]:
    """Case-insensitive username search, excluding the caller."""
    fragment = (fragment or "").strip()
    if len(fragment) < SEARCH_MIN_LENGTH:
        raise ValidationError(f"Username must be at least {SEARCH_MIN_LENGTH} characters")

    pattern = "%" + fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
    result = await db.execute(
        select(User)
        .where(User.username.ilike(pattern, escape="\\"), User.id != as_uuid(exclude))
        .order_by(User.username)
        .limit(SEARCH_LIMIT)
    )
    return list(result.scalars().all())


async def update_profile(
    db: AsyncSession,
    user: User,
    *,
    name: str | None = None,
    avatar_url: str | None = None,
) -> User:
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Name cannot be empty")
        user.name = name
    if avatar_url is not None:
        user.avatar_url = avatar_url.strip() or None
    await db.flush()
    await db.refresh(user)
    return user


async def resolve_caller(db: AsyncSession, claims: dict) -> User:
    """Map verified token claims to a User row, provisioning on first sight."""
    subject = claims["sub"]
    result = await db.execute(select(User).where(User.subject == subject))
    user = result.scalar_one_or_none()
    if user is not None:
        return user

    email = claims.get("email")
    username = claims.get("preferred_username") or claims.get("username") or subject
    user = User(
        subject=subject,
        username=username[:50],
        email=email,
        name=claims.get("name") or username,
    )
    db.add(user)
    await db.flush()
    logger.info("Provisioned user %s (%s)", user.id, user.username)
    return user
