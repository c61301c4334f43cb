"""Per-IP request throttling backed by Redis counters."""

from dataclasses import dataclass
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.core.dependencies import get_client_ip
from app.core.exceptions import problem_details, problem_response
from app.core.logging import get_logger
from app.core.redis import RateLimiter, get_redis_client

logger = get_logger(__name__)

# Credential endpoints get the strict limit
AUTH_LIMITED_PATHS = ("/auth/login", "/auth/register", "/auth/refresh")


@dataclass(frozen=True)
class LimitRule:
    bucket: str
    max_requests: int
    window_seconds: int


def resolve_rule(path: str, method: str) -> LimitRule | None:
    """Which limit applies to a request, or None when it is not limited.

    Health probes and admin routes are never limited.
    """
    prefix = settings.api_prefix
    if not path.startswith(prefix) or path.startswith(f"{prefix}/admin/"):
        return None

    if method == "POST" and path.endswith(AUTH_LIMITED_PATHS):
        if settings.is_development:
            return LimitRule("auth", 50, 60)
        return LimitRule(
            "auth",
            settings.rate_limit_login_requests,
            settings.rate_limit_login_window_seconds,
        )

    return LimitRule("api", settings.rate_limit_requests, settings.rate_limit_window_seconds)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limits per client IP.

    Responses carry X-RateLimit-* headers; a rejected request gets a 429
    problem document with Retry-After. Without Redis every request
    passes.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        rule = resolve_rule(request.url.path, request.method)
        if rule is None:
            return await call_next(request)

        redis_client = get_redis_client()
        if redis_client is None:
            return await call_next(request)

        client_ip = get_client_ip(request) or "unknown"
        allowed, remaining, reset_seconds = await RateLimiter(redis_client).is_allowed(
            f"{rule.bucket}:{client_ip}", rule.max_requests, rule.window_seconds
        )
        limit_headers = {
            "X-RateLimit-Limit": str(rule.max_requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(reset_seconds),
        }

        if not allowed:
            logger.warning(
                "rate_limit_exceeded",
                client_ip=client_ip,
                bucket=rule.bucket,
                path=request.url.path,
                limit=rule.max_requests,
            )
            problem = problem_details(
                429,
                "rate_limit_exceeded",
                f"Rate limit exceeded. Try again in {reset_seconds} seconds.",
                instance=request.url.path,
                retry_after=reset_seconds,
            )
            return problem_response(
                problem, headers={**limit_headers, "Retry-After": str(reset_seconds)}
            )

        response = await call_next(request)
        response.headers.update(limit_headers)
        return response
