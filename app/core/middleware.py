"""Request middleware: correlation ids and access logging."""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging import get_logger, request_id_ctx

logger = get_logger(__name__)

# Liveness/readiness probes are polled constantly; keep them out of the access log.
QUIET_PATHS = frozenset({"/health", "/health/ready"})


def client_ip(request: Request) -> str | None:
    """Best-effort client address, honouring X-Forwarded-For from a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind an X-Request-ID to every request and log its outcome.

    A client-supplied X-Request-ID is reused; otherwise a UUID4 is generated.
    The id is echoed back in the response header and attached to every log
    event emitted while the request is handled.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            if path not in QUIET_PATHS:
                if response.status_code >= 500:
                    log = logger.error
                elif response.status_code >= 400:
                    log = logger.warning
                else:
                    log = logger.info
                log(
                    "http.request_completed",
                    method=request.method,
                    path=path,
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    client_ip=client_ip(request),
                )
            return response
        finally:
            request_id_ctx.reset(token)
