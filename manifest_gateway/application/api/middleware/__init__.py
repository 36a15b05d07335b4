"""
Middleware Package
==================

AVAILABLE MIDDLEWARE:
---------------------
1. request_context: X-Request-Id correlation and request logging
2. cors: CORS gatekeeper with wildcard and suffix origin rules
3. error_handler: catch-all 500 in the uniform error body
4. rate_limit: window rate limiting for manifest reads

MIDDLEWARE ORDERING:
--------------------
Starlette runs the LAST added middleware FIRST. setup_middleware() adds them
in reverse so the request flow is:

    Client -> RequestContext -> CORS -> ErrorHandling -> RateLimit -> Route

so 500s and 429s still carry X-Request-Id and CORS headers.
"""

from fastapi import FastAPI

from manifest_gateway.core.logging.logger import get_logger

from .cors import CORSGatekeeperMiddleware
from .error_handler import ErrorHandlingMiddleware
from .rate_limit import RateLimitMiddleware
from .request_context import RequestContextMiddleware

logger = get_logger(__name__)


def setup_middleware(app: FastAPI, container) -> None:
    """
    Register all middleware in the correct order.

    Args:
        app: FastAPI application
        container: GatewayContainer holding the limiter, allow-list and metrics
    """
    settings = container.settings

    app.add_middleware(
        RateLimitMiddleware,
        limiter=container.rate_limiter,
        path_prefix=f"{settings.API_BASE_PATH}/manifests",
        metrics=container.metrics,
        trust_proxy_headers=settings.rate_limit.TRUST_PROXY_HEADERS,
    )
    app.add_middleware(
        ErrorHandlingMiddleware,
        include_traceback=(settings.ENVIRONMENT == "development"),
    )
    app.add_middleware(
        CORSGatekeeperMiddleware,
        allow_list=container.origins,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    )
    app.add_middleware(RequestContextMiddleware)

    logger.info(
        "Middleware registered",
        order=["request_context", "cors", "error_handler", "rate_limit"],
    )


__all__ = [
    "CORSGatekeeperMiddleware",
    "ErrorHandlingMiddleware",
    "RateLimitMiddleware",
    "RequestContextMiddleware",
    "setup_middleware",
]
