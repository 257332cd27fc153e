"""Request logging middleware."""

import time
from collections.abc import Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.commons.telemetry.logger import (
    clear_log_context,
    get_logger,
    set_correlation_id,
)

logger = get_logger(__name__)

# Health checks are logged at DEBUG to keep the request log readable
_QUIET_PATH_PREFIX = "/health"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request and tag it with a request id.

    The id comes from ``X-Request-ID`` when the caller sends one and is
    generated otherwise. It doubles as the correlation id, so the lines
    logged by the reconciler and orchestrator while serving a webhook or
    sync call can be tied back to that call. The id is echoed in the
    response header and in error envelopes.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        clear_log_context()
        request_id = set_correlation_id(request.headers.get("X-Request-ID"))
        request.state.request_id = request_id

        path = request.url.path
        log = logger.debug if path.startswith(_QUIET_PATH_PREFIX) else logger.info
        log(
            f"{request.method} {path}",
            extra={
                "query": str(request.query_params),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        started = time.perf_counter()
        response: Response = await call_next(request)
        log(
            f"{request.method} {path} -> {response.status_code}",
            extra={
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )

        response.headers["X-Request-ID"] = request_id
        return response
