"""
Cache Routes
============

GET  /cache/stats         hit/miss/purge/warm counters (public)
POST /cache/stats/reset   zero the counters (webhook secret)
GET  /cache/entries       per-type view of the key-value tier (webhook secret)
"""

from fastapi import APIRouter, Depends

from manifest_gateway.application.api.dependencies import (
    ContainerDep,
    ManifestServiceDep,
    MetricsDep,
    verify_webhook_secret,
)
from manifest_gateway.application.api.models import (
    CacheEntriesResponse,
    CacheEntryInfo,
    CacheStatsResponse,
)
from manifest_gateway.core.exceptions import utc_timestamp

router = APIRouter(prefix="/cache", tags=["Cache"])


def _stats(container) -> CacheStatsResponse:
    return CacheStatsResponse(
        **container.metrics.snapshot(),
        store_backend=container.kv_store.backend_name,
        store_degraded=container.kv_store.degraded,
    )


@router.get("/stats", response_model=CacheStatsResponse)
async def cache_stats(container: ContainerDep):
    return _stats(container)


@router.post(
    "/stats/reset",
    response_model=CacheStatsResponse,
    dependencies=[Depends(verify_webhook_secret)],
)
async def reset_cache_stats(container: ContainerDep, metrics: MetricsDep):
    metrics.reset()
    return _stats(container)


@router.get(
    "/entries",
    response_model=CacheEntriesResponse,
    dependencies=[Depends(verify_webhook_secret)],
)
async def cache_entries(service: ManifestServiceDep):
    """Inspect what the key-value tier currently holds for each configured type."""
    entries = [CacheEntryInfo(**entry) for entry in await service.inspect()]
    return CacheEntriesResponse(
        total=len(entries),
        cached=sum(1 for entry in entries if entry.cached),
        entries=entries,
        timestamp=utc_timestamp(),
    )
