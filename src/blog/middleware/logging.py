"""Per-request access log tagged with a request id."""
import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
# Probes hit these every few seconds
QUIET_PREFIX = "/api/v1/health/"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Give each request an id and log its outcome.

    The id is taken from the caller's X-Request-ID header when present,
    bound into structlog context vars while the request is handled (so
    search and index log lines carry it too) and echoed on the response.
    Health probes get an id but no access log line.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        started = time.perf_counter()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)
            if not request.url.path.startswith(QUIET_PREFIX):
                if response.status_code >= 500:
                    log = logger.error
                elif response.status_code >= 400:
                    log = logger.warning
                else:
                    log = logger.info
                log(
                    "http_request",
                    method=request.method,
                    path=request.url.path,
                    query=request.url.query or None,
                    status=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
