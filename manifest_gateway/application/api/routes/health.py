"""
Health Check Routes
===================

GET /health         summary: status, cache hit rate, store health
GET /health/live    liveness: the process answers (never checks dependencies)
GET /health/ready   readiness: configuration is usable and the store answers

A Redis outage makes the service "degraded", not unready: reads still work
from the in-process fallback. Readiness fails (503) only when the gateway
cannot serve manifests at all, i.e. no upstream base URL is configured.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from manifest_gateway.application.api.dependencies import ContainerDep
from manifest_gateway.application.api.models import CacheSummary, HealthResponse, ProbeResponse
from manifest_gateway.core.exceptions import utc_timestamp

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
async def health(container: ContainerDep):
    snapshot = container.metrics.snapshot()
    store = await container.kv_store.health_check()
    return HealthResponse(
        status="ok" if store["status"] == "healthy" else "degraded",
        timestamp=utc_timestamp(),
        version=container.settings.APP_VERSION,
        cache=CacheSummary(
            hits=snapshot["hits"], misses=snapshot["misses"], hit_rate=snapshot["hit_rate"]
        ),
        store=store,
    )


@router.get("/live", response_model=ProbeResponse)
async def liveness():
    return ProbeResponse(status="alive", timestamp=utc_timestamp())


@router.get("/ready", response_model=ProbeResponse)
async def readiness(container: ContainerDep):
    store = await container.kv_store.health_check()
    checks = {
        "upstream_configured": bool(container.registry.base_url),
        "manifest_types": len(container.registry.types),
        "store": store["status"],
    }
    ready = checks["upstream_configured"] and checks["manifest_types"] > 0
    body = ProbeResponse(
        status="ready" if ready else "not_ready",
        timestamp=utc_timestamp(),
        checks=checks,
    )
    if not ready:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
