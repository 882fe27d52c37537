"""Admin key check for index maintenance requests."""

import secrets
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
ADMIN_KEY_HEADER = "X-API-Key"


def _reject(error: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": error, "detail": detail})


class AdminKeyMiddleware(BaseHTTPMiddleware):
    """Guard writes (index rebuilds, entity syncs) behind the admin key.

    Reads stay public so the site and its search box work without a key.
    """

    def __init__(self, app: Callable[..., Awaitable[Response]], admin_key: str) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application.
            admin_key: Key expected in the X-API-Key header.
        """
        super().__init__(app)  # type: ignore[arg-type]
        self._admin_key = admin_key.encode()

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Pass reads through; require a matching key for everything else.

        Returns:
            Handler response, or 401 with an error code.
        """
        if request.method in READ_METHODS:
            return await call_next(request)

        provided = request.headers.get(ADMIN_KEY_HEADER)
        if not provided:
            logger.warning("admin_key_missing", method=request.method, path=request.url.path)
            return _reject("ADMIN_KEY_REQUIRED", f"Missing {ADMIN_KEY_HEADER} header")

        if not secrets.compare_digest(provided.encode(), self._admin_key):
            logger.warning("admin_key_invalid", method=request.method, path=request.url.path)
            return _reject("ADMIN_KEY_INVALID", "Invalid admin key")

        return await call_next(request)
