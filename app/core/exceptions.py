"""Application errors and their RFC 7807 rendering.

Every error leaves the API as ``application/problem+json``. Business-rule
rejections (delivery threshold shortages, geofence misses, insufficient
stock) carry their numbers in ``details``; those keys become top-level
extension members of the problem document so clients can read them
without parsing the message.

Reference: https://datatracker.ietf.org/doc/html/rfc7807
"""

from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import get_logger, request_id_ctx

logger = get_logger(__name__)

PROBLEM_TYPE_BASE = "/errors"

# Members owned by the problem document itself; ``details`` cannot override them.
RESERVED_MEMBERS = frozenset(
    {"type", "title", "status", "detail", "instance", "errors", "code", "request_id"}
)


# =============================================================================
# Exception Classes
# =============================================================================


class StoreOpsError(Exception):
    """Base class for errors that map onto an HTTP problem response.

    Subclasses only declare their status, machine code and default message.

    Attributes:
        message: Human-readable explanation, rendered as ``detail``.
        details: Extra context rendered as problem extension members.
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal error"
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def title(self) -> str:
        return HTTPStatus(self.status_code).phrase

    @property
    def type_uri(self) -> str:
        return f"{PROBLEM_TYPE_BASE}/{self.code.lower().replace('_', '-')}"


class BadRequestError(StoreOpsError):
    """Request is well-formed but breaks a business rule.

    Used for insufficient stock, orders below the delivery threshold,
    clock-ins outside the store radius and invalid status transitions.
    """

    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Bad request"


class UnauthorizedError(StoreOpsError):
    """Missing, unknown, expired or revoked credentials."""

    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(StoreOpsError):
    """Authenticated user lacks the role or ownership for the action."""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "Insufficient permissions"


class NotFoundError(StoreOpsError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(StoreOpsError):
    """Unique value already taken (username, email, store or product code)."""

    status_code = 409
    code = "CONFLICT"
    default_message = "Resource conflict"


# =============================================================================
# Problem Responses
# =============================================================================


class ProblemDetailResponse(JSONResponse):
    """JSON response with RFC 7807 content type."""

    media_type = "application/problem+json"


def problem_response(
    status: int,
    detail: str,
    code: str,
    type_uri: str | None = None,
    title: str | None = None,
    errors: list[dict[str, str]] | None = None,
    extensions: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> ProblemDetailResponse:
    """Build a problem+json response.

    Args:
        status: HTTP status code.
        detail: Explanation of this occurrence.
        code: Machine-readable error code.
        type_uri: Problem type; derived from ``code`` when omitted.
        title: Short summary; the HTTP reason phrase when omitted.
        errors: Field-level validation errors.
        extensions: Extra members. Decimals and dates are JSON-encoded and
            reserved member names are dropped.
        headers: Extra response headers.

    Returns:
        The response, including the request id when one is bound.
    """
    request_id = request_id_ctx.get()
    body: dict[str, Any] = {
        key: value
        for key, value in jsonable_encoder(extensions or {}).items()
        if key not in RESERVED_MEMBERS
    }
    body.update(
        type=type_uri or f"{PROBLEM_TYPE_BASE}/{code.lower().replace('_', '-')}",
        title=title or HTTPStatus(status).phrase,
        status=status,
        detail=detail,
        code=code,
    )
    if errors is not None:
        body["errors"] = errors
    if request_id:
        body["instance"] = f"/requests/{request_id}"
        body["request_id"] = request_id

    return ProblemDetailResponse(status_code=status, content=body, headers=headers)


# =============================================================================
# Exception Handlers
# =============================================================================


async def storeops_exception_handler(
    request: Request,
    exc: StoreOpsError,
) -> ProblemDetailResponse:
    """Render an application error.

    Client errors are logged at warning level, server errors at error level
    with the traceback.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        path=request.url.path,
        details=exc.details,
        exc_info=exc.status_code >= 500,
    )
    return problem_response(
        status=exc.status_code,
        detail=exc.message,
        code=exc.code,
        type_uri=exc.type_uri,
        title=exc.title,
        extensions=exc.details,
        headers=exc.headers,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Render request validation failures with one entry per field."""
    field_errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(error.get("msg", "Validation failed")),
            "type": str(error.get("type", "unknown")),
        }
        for error in exc.errors()
    ]

    logger.warning(
        "app.validation_error",
        error_count=len(field_errors),
        path=request.url.path,
        fields=[e["field"] for e in field_errors],
    )
    return problem_response(
        status=422,
        detail=f"Request validation failed with {len(field_errors)} error(s).",
        code="VALIDATION_ERROR",
        title="Validation Error",
        errors=field_errors,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> ProblemDetailResponse:
    """Render framework errors such as unknown routes or wrong methods."""
    logger.info("app.http_error", status_code=exc.status_code, path=request.url.path)
    return problem_response(
        status=exc.status_code,
        detail=str(exc.detail),
        code=HTTPStatus(exc.status_code).name,
        headers=exc.headers,
    )


async def integrity_exception_handler(
    request: Request,
    exc: IntegrityError,
) -> ProblemDetailResponse:
    """Unique or foreign-key violation that slipped past the service checks."""
    logger.warning(
        "app.integrity_error",
        path=request.url.path,
        error=str(exc.orig),
    )
    return problem_response(
        status=409,
        detail="The change conflicts with existing data.",
        code="CONFLICT",
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )
    return problem_response(
        status=500,
        detail="An unexpected error occurred. Contact support with the request_id.",
        code="INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the problem+json handlers on the app."""
    app.add_exception_handler(StoreOpsError, storeops_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, integrity_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
