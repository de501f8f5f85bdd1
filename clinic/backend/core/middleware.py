"""
Request Context Middleware.

Request IDs, caller source, timing, and structlog context for every request.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from clinic.backend.core.logging import get_logger

logger = get_logger(__name__)

# Values accepted in X-Frontend-ID; anything else is logged as "unknown".
KNOWN_SOURCES = frozenset({"web", "api", "cli", "internal"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Attach request context to every request.

    - X-Request-ID is propagated, or generated when absent, and echoed back
    - X-Frontend-ID becomes the `source` of every log record for the request
    - X-Response-Time reports the handling time in milliseconds

    Handlers can read request.state.request_id, request.state.source and
    request.state.start_time.
    """

    def __init__(self, app, log_requests: bool = True) -> None:
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        source = request.headers.get("X-Frontend-ID", "unknown").lower()
        if source not in KNOWN_SOURCES:
            source = "unknown"

        start = time.perf_counter()
        request.state.request_id = request_id
        request.state.source = source
        request.state.start_time = start

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            source=source,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed with exception",
                extra={
                    "duration_ms": _elapsed_ms(start),
                    "error_type": type(exc).__name__,
                },
            )
            raise
        else:
            duration_ms = _elapsed_ms(start)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            if self.log_requests:
                logger.info(
                    "Request completed",
                    extra={"status_code": response.status_code, "duration_ms": duration_ms},
                )
            return response
        finally:
            structlog.contextvars.clear_contextvars()


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
