"""
FastAPI Dependency Injection Module
===================================

Reusable dependencies that hand route handlers the components built by
create_app(). Everything lives on ``request.app.state.container`` so each
application instance (and each test) has its own isolated graph.

Example:
    @router.get("/cache/stats")
    async def stats(metrics: MetricsDep):
        return metrics.snapshot()
"""

import hmac
from typing import Annotated

from fastapi import Depends, Request

from manifest_gateway.application.container import GatewayContainer
from manifest_gateway.application.services.invalidation_service import InvalidationService
from manifest_gateway.application.services.manifest_service import ManifestService
from manifest_gateway.core.config.constants import HEADER_WEBHOOK_SECRET, Stage
from manifest_gateway.core.config.settings import Settings
from manifest_gateway.core.exceptions import UnauthorizedError
from manifest_gateway.core.logging.logger import get_logger, log_stage
from manifest_gateway.infrastructure.monitoring.metrics_collector import CacheMetrics

logger = get_logger(__name__)


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_container(request: Request) -> GatewayContainer:
    return request.app.state.container


def get_app_settings(request: Request) -> Settings:
    return request.app.state.container.settings


def get_manifest_service(request: Request) -> ManifestService:
    return request.app.state.container.manifests


def get_invalidation_service(request: Request) -> InvalidationService:
    return request.app.state.container.invalidation


def get_metrics(request: Request) -> CacheMetrics:
    return request.app.state.container.metrics


async def verify_webhook_secret(request: Request) -> None:
    """
    Require the pre-shared webhook secret.

    The secret is read from the X-Webhook-Secret header, or from the
    ``secret`` query parameter for webhook senders that cannot set headers.
    Comparison is constant-time.

    With no secret configured, requests are refused in production and
    allowed (with a warning) everywhere else.

    Raises:
        UnauthorizedError: Missing or wrong secret
    """
    settings = get_app_settings(request)
    expected = settings.WEBHOOK_SECRET

    if not expected:
        if settings.is_production:
            log_stage(
                logger, Stage.WEBHOOK_AUTH, "Webhook refused: no secret configured",
                level="error", path=request.url.path,
            )
            raise UnauthorizedError("Webhook secret is not configured")
        log_stage(
            logger, Stage.WEBHOOK_AUTH, "Webhook accepted without secret (non-production)",
            level="warning", path=request.url.path,
        )
        return

    provided = request.headers.get(HEADER_WEBHOOK_SECRET) or request.query_params.get("secret")
    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        log_stage(
            logger, Stage.WEBHOOK_AUTH, "Webhook rejected: invalid secret",
            level="warning", path=request.url.path, secret_present=bool(provided),
        )
        raise UnauthorizedError("Invalid or missing webhook secret")


# ============================================================================
# TYPE ALIASES FOR DEPENDENCY INJECTION
# ============================================================================

ContainerDep = Annotated[GatewayContainer, Depends(get_container)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ManifestServiceDep = Annotated[ManifestService, Depends(get_manifest_service)]
InvalidationServiceDep = Annotated[InvalidationService, Depends(get_invalidation_service)]
MetricsDep = Annotated[CacheMetrics, Depends(get_metrics)]
