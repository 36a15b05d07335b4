#!/usr/bin/env python3
"""
FastAPI Application Factory

Configures the manifest gateway: component container, middleware, routes
and exception handlers.

Author: Senior Solution Architect
Date: 2025-12-05
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from manifest_gateway.application.api.middleware import setup_middleware
from manifest_gateway.application.api.routes import (
    cache_router,
    health_router,
    manifests_router,
    metrics_router,
    webhooks_router,
)
from manifest_gateway.application.container import GatewayContainer
from manifest_gateway.core.config.constants import Stage
from manifest_gateway.core.config.settings import Settings, get_settings
from manifest_gateway.core.exceptions import (
    ManifestGatewayError,
    RateLimitExceededError,
    utc_timestamp,
)
from manifest_gateway.core.logging.logger import get_logger, get_request_id, log_stage, setup_logging

logger = get_logger(__name__)

HTTP_ERROR_KINDS = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).
    """
    container: GatewayContainer = app.state.container
    settings = container.settings

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    log_stage(
        logger, Stage.INITIALIZATION, "Starting manifest gateway",
        environment=settings.ENVIRONMENT, version=settings.APP_VERSION,
        config=settings.safe_summary(),
    )
    for warning in settings.startup_warnings():
        logger.warning("Configuration warning", stage=Stage.INITIALIZATION.value, detail=warning)

    try:
        await container.startup()
        logger.info("Application startup complete")
        yield
    finally:
        logger.info("Shutting down application")
        await container.shutdown()
        logger.info("Application shutdown complete")


# ============================================================================
# Exception Handlers
# ============================================================================


async def gateway_exception_handler(request: Request, exc: ManifestGatewayError):
    """Render any gateway exception with its own status and error kind."""
    level = "error" if exc.status_code >= 500 else "info"
    log_stage(
        logger, Stage.ERROR_RESPONSE, f"Request failed: {exc.message}",
        level=level, error=exc.error_code, status_code=exc.status_code,
        path=request.url.path, details=exc.details or None,
    )

    exc.request_id = exc.request_id or get_request_id()
    headers = {}
    if isinstance(exc, RateLimitExceededError):
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes, method mismatches and explicit HTTPExceptions."""
    body = {
        "error": HTTP_ERROR_KINDS.get(exc.status_code, "http_error"),
        "message": exc.detail if isinstance(exc.detail, str) else "Request failed",
        "timestamp": utc_timestamp(),
    }
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = {
        "error": "validation_error",
        "message": "Request validation failed",
        "timestamp": utc_timestamp(),
        "details": {"errors": jsonable_encoder(exc.errors())},
    }
    return JSONResponse(status_code=422, content=body)


# ============================================================================
# Application Factory
# ============================================================================


def create_app(
    settings: Settings | None = None,
    container: GatewayContainer | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Components are built here rather than in the lifespan so a TestClient
    used without a ``with`` block still has a complete graph; the lifespan
    only connects and closes external resources.

    Args:
        settings: Settings to use (defaults to get_settings())
        container: Pre-built component graph (tests inject fakes this way)
    """
    if container is None:
        container = GatewayContainer.build(settings or get_settings())
    settings = container.settings

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Caching gateway for media manifests",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.container = container

    setup_middleware(app, container)

    app.add_exception_handler(ManifestGatewayError, gateway_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # ========================================================================
    # ROUTER REGISTRATION
    # ========================================================================
    # All API endpoints are prefixed with API_BASE_PATH (default: /api/v1).
    # An empty API_BASE_PATH mounts them at the root.

    base_path = settings.API_BASE_PATH
    app.include_router(manifests_router, prefix=base_path)
    app.include_router(webhooks_router, prefix=base_path)
    app.include_router(cache_router, prefix=base_path)
    app.include_router(health_router, prefix=base_path)
    app.include_router(metrics_router, prefix=base_path)

    @app.get("/", tags=["Root"])
    async def root():
        """Service index."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "endpoints": {
                "manifests": f"{base_path}/manifests",
                "webhooks": f"{base_path}/webhooks",
                "cache_stats": f"{base_path}/cache/stats",
                "health": f"{base_path}/health",
                "metrics": f"{base_path}/metrics",
                "docs": "/docs",
            },
        }

    return app
