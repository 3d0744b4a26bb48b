"""FastAPI dependency chain: DB session, JWT → User, event notifier."""

from collections.abc import AsyncGenerator

from fastapi import BackgroundTasks, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.security import decode_access_token
from taskforge.db.session import async_session_factory
from taskforge.models.user import User
from taskforge.services.identity import resolve_caller
from taskforge.services.notifications import ProjectNotifier

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session. Commits on success, rolls back on error.

    One session per request: every write a request makes, including the
    two-aggregate invitation acceptance, commits or rolls back as a unit.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_current_user_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    """Extract and verify the Bearer token, returning JWT claims."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    try:
        claims = await decode_access_token(credentials.credentials)
    except JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}") from e

    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Token missing sub claim")
    return claims


async def get_current_user(
    claims: dict = Depends(get_current_user_claims),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the token subject to a User row (auto-provisioned on first use)."""
    user = await resolve_caller(db, claims)
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User account is deactivated")
    return user


def get_notifier(background_tasks: BackgroundTasks) -> ProjectNotifier:
    """Events are published as background tasks, after the commit."""
    return ProjectNotifier(background_tasks.add_task)
