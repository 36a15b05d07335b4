"""
Rate Limit Middleware
=====================

Applies the window rate limiter to the public manifest read endpoints only.
Webhooks, health probes, stats and metrics are never limited.

Every limited response carries X-RateLimit-Limit / -Remaining / -Reset;
a rejected request gets 429 with Retry-After and the uniform error body.
"""

from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from manifest_gateway.core.config.constants import (
    HEADER_RATE_LIMIT_LIMIT,
    HEADER_RATE_LIMIT_REMAINING,
    HEADER_RATE_LIMIT_RESET,
)
from manifest_gateway.core.exceptions import RateLimitExceededError
from manifest_gateway.infrastructure.monitoring.metrics_collector import CacheMetrics
from manifest_gateway.rate_limiting.rate_limiter import (
    RateLimitDecision,
    WindowRateLimiter,
    get_client_identifier,
)


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    return {
        HEADER_RATE_LIMIT_LIMIT: str(decision.limit),
        HEADER_RATE_LIMIT_REMAINING: str(decision.remaining),
        HEADER_RATE_LIMIT_RESET: str(decision.reset_at // 1000),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        limiter: WindowRateLimiter,
        path_prefix: str,
        metrics: CacheMetrics | None = None,
        trust_proxy_headers: bool = True,
    ):
        """
        Args:
            app: The ASGI application
            limiter: Shared limiter instance
            path_prefix: Requests whose path starts with this prefix are limited
            metrics: Receives a rejection count per 429
            trust_proxy_headers: Identify clients by CF-Connecting-IP / X-Real-IP
        """
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix
        self.metrics = metrics
        self.trust_proxy_headers = trust_proxy_headers

    def applies_to(self, request: Request) -> bool:
        path = request.url.path
        if request.method not in ("GET", "HEAD"):
            return False
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.applies_to(request):
            return await call_next(request)

        client_id = get_client_identifier(request, self.trust_proxy_headers)
        decision = await self.limiter.check(client_id)
        headers = rate_limit_headers(decision)

        if not decision.allowed:
            if self.metrics is not None:
                self.metrics.record_rate_limited()
            retry_after = decision.retry_after_seconds(self.limiter.now_ms())
            error = RateLimitExceededError(retry_after=retry_after, details={"limit": decision.limit})
            headers["Retry-After"] = str(error.retry_after)
            return JSONResponse(status_code=error.status_code, content=error.to_dict(), headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
