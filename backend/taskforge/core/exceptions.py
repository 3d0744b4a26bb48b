"""RFC 7807 Problem Details error handling and the domain error taxonomy."""

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class ProblemDetailError(Exception):
    """Raise for RFC 7807 problem+json responses."""

    def __init__(
        self,
        status: int,
        title: str,
        detail: str,
        error_type: str | None = None,
    ):
        super().__init__(detail)
        self.status = status
        self.title = title
        self.detail = detail
        self.error_type = error_type or "about:blank"


class DomainError(ProblemDetailError):
    """Base for errors raised by the service layer.

    Subclasses fix the HTTP status and title; callers only supply the
    human-readable detail.
    """

    status_code: int = 400
    title_text: str = "Bad Request"

    def __init__(self, detail: str):
        super().__init__(status=self.status_code, title=self.title_text, detail=detail)


class NotFoundError(DomainError):
    status_code = 404
    title_text = "Not Found"


class PermissionDeniedError(DomainError):
    """Authenticated, but not allowed to perform this action."""

    status_code = 403
    title_text = "Forbidden"


class ConflictError(DomainError):
    """State or uniqueness violation (already a member, already processed...)."""

    status_code = 409
    title_text = "Conflict"


class ValidationError(DomainError):
    status_code = 400
    title_text = "Bad Request"


class ExpiredError(DomainError):
    """A time-bound action was attempted past its deadline."""

    status_code = 400
    title_text = "Expired"


class InvariantViolation(RuntimeError):
    """A persisted aggregate broke one of its invariants. Never expected."""


async def problem_detail_handler(request: Request, exc: ProblemDetailError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status,
        content={
            "type": exc.error_type,
            "title": exc.title,
            "status": exc.status,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": "about:blank",
            "title": exc.detail if isinstance(exc.detail, str) else "Error",
            "status": exc.status_code,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "type": "about:blank",
            "title": "Validation Error",
            "status": 422,
            "detail": jsonable_encoder(exc.errors()),
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )
