"""Health check endpoint."""

import redis.asyncio as aioredis
from fastapi import APIRouter
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from taskforge.core.config import settings
from taskforge.db.session import engine

router = APIRouter()

VERSION = "0.1.0"


@router.get("/health")
async def health_check():
    """Check DB and Redis connectivity. Redis only carries best-effort events."""
    db_status = "ok"
    redis_status = "ok"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        db_status = "error"

    if settings.NOTIFICATIONS_ENABLED:
        try:
            r = aioredis.from_url(settings.REDIS_URL)
            try:
                await r.ping()
            finally:
                await r.aclose()
        except (RedisError, OSError):
            redis_status = "error"
    else:
        redis_status = "disabled"

    status = "ok" if db_status == "ok" and redis_status != "error" else "degraded"
    return {
        "status": status,
        "db": db_status,
        "redis": redis_status,
        "version": VERSION,
    }
