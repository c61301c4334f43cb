"""Access log with a per-request correlation id."""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.dependencies import get_client_ip
from app.core.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)

# Probes are polled constantly
_UNLOGGED_PATHS = frozenset({"/health/live", "/health/ready"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id into the log context and echo it as X-Request-ID.

    A caller-supplied X-Request-ID is reused so ids can be followed
    across services. X-Process-Time carries the handling time in seconds.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        bind_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=get_client_ip(request),
        )
        log_access = request.url.path not in _UNLOGGED_PATHS
        if log_access:
            logger.info("request_started", user_agent=request.headers.get("user-agent", ""))
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed = time.perf_counter() - started
            logger.exception(
                "request_failed", error=str(exc), duration_ms=round(elapsed * 1000, 2)
            )
            raise
        else:
            elapsed = time.perf_counter() - started
            if log_access:
                logger.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round(elapsed * 1000, 2),
                )
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{elapsed:.4f}"
            return response
        finally:
            clear_context()
