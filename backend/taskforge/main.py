"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskforge.api.v1.router import api_v1_router
from taskforge.core.config import settings
from taskforge.core.exceptions import (
    ProblemDetailError,
    http_exception_handler,
    problem_detail_handler,
    validation_exception_handler,
)
from taskforge.core.middleware.cors import get_cors_config
from taskforge.core.middleware.request_id import RequestIdMiddleware
from taskforge.db.session import async_session_factory, engine
from taskforge.services.sweeper import sweep_forever

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    sweep_task = None
    if settings.INVITATION_SWEEP_INTERVAL_SECONDS > 0:
        sweep_task = asyncio.create_task(
            sweep_forever(async_session_factory, settings.INVITATION_SWEEP_INTERVAL_SECONDS)
        )
        logger.info(
            "Invitation sweep every %ds", settings.INVITATION_SWEEP_INTERVAL_SECONDS
        )
    try:
        yield
    finally:
        if sweep_task is not None:
            sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweep_task
        await engine.dispose()


configure_logging()

app = FastAPI(
    title="TaskForge API",
    version="0.1.0",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Middleware (last added = first executed)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(CORSMiddleware, **get_cors_config())

# Exception handlers (RFC 7807)
app.add_exception_handler(ProblemDetailError, problem_detail_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Routes
app.include_router(api_v1_router, prefix="/api/v1")
