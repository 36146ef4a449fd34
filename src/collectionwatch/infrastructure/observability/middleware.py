"""Request/response logging middleware."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from collectionwatch.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


# Hey future me, this runs around EVERY request. It picks up the caller's
# X-Correlation-ID (or makes one), so every log line of the request carries it, and
# echoes it back in the response header. Health checks are logged at DEBUG only,
# load balancers poll them every few seconds.
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests and responses with correlation IDs."""

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        quiet_paths: tuple[str, ...] = ("/health",),
    ) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application
            log_request_body: Also log the raw request body (debugging only)
            quiet_paths: Path prefixes logged at DEBUG instead of INFO
        """
        super().__init__(app)
        self.log_request_body = log_request_body
        self.quiet_paths = quiet_paths

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))

        method = request.method
        path = request.url.path
        level = (
            logging.DEBUG
            if any(path.startswith(p) for p in self.quiet_paths)
            else logging.INFO
        )

        extra: dict[str, object] = {
            "method": method,
            "path": path,
            "query_params": str(request.query_params),
            "client_ip": request.client.host if request.client else "unknown",
        }
        if self.log_request_body:
            body = await request.body()
            extra["body"] = body.decode("utf-8", errors="replace")
        logger.log(level, f"→ {method} {path}", extra=extra)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"Request failed: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "duration_ms": int((time.perf_counter() - start_time) * 1000),
                    "error_type": type(e).__name__,
                },
            )
            raise

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        status_mark = "✓" if response.status_code < 400 else "✗"
        logger.log(
            level,
            f"{status_mark} {method} {path} → {response.status_code} ({duration_ms}ms)",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers[CORRELATION_HEADER] = correlation_id or get_correlation_id()
        return response
