"""
API Response Models
===================

Pydantic models for the JSON endpoints. Manifest bodies themselves are
served raw (they are upstream documents), so they have no model here.
"""

from typing import Any

from pydantic import BaseModel, Field

# ============================================================================
# CATALOGUE
# ============================================================================


class ManifestLink(BaseModel):
    type: str
    endpoint: str


class ManifestCatalogueResponse(BaseModel):
    types: list[str]
    total: int = Field(..., ge=0)
    manifests: list[ManifestLink]


# ============================================================================
# WEBHOOKS
# ============================================================================


class WebhookResponse(BaseModel):
    """
    Result of a purge, warm or refresh webhook.

    Single-type actions fill ``type``; "all" actions fill the aggregate
    counters and ``results``.
    """

    success: bool
    action: str = Field(..., description="purge, purge-all, warm, warm-all, refresh, refresh-all")
    timestamp: str
    type: str | None = None
    deleted: bool | None = None
    purged: int | bool | None = None
    warmed: int | None = None
    cached: int | bool | None = None
    failed: int | None = None
    total: int | None = None
    etag: str | None = None
    item_count: int | None = None
    size_bytes: int | None = None
    error: str | None = None
    message: str | None = None
    results: list[dict[str, Any]] | None = None


# ============================================================================
# CACHE INSPECTION
# ============================================================================


class CacheStatsResponse(BaseModel):
    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    purges: int = Field(..., ge=0)
    warms: int = Field(..., ge=0)
    hit_rate: str = Field(..., description='Percentage like "66.7%", or "N/A" before any lookup')
    uptime_ms: int = Field(..., ge=0, description="Milliseconds since the counters were last reset")
    last_reset: str
    store_backend: str
    store_degraded: bool


class CacheEntryInfo(BaseModel):
    type: str
    key: str
    state: str
    cached: bool
    etag: str | None = None
    item_count: int | None = None
    size_bytes: int | None = None
    fresh_for_seconds: int | None = None
    ttl_seconds: int | None = None
    fetched_at: float | None = None
    source_url: str | None = None


class CacheEntriesResponse(BaseModel):
    total: int
    cached: int
    entries: list[CacheEntryInfo]
    timestamp: str


# ============================================================================
# HEALTH
# ============================================================================


class CacheSummary(BaseModel):
    hits: int
    misses: int
    hit_rate: str


class HealthResponse(BaseModel):
    status: str = Field(..., description="ok or degraded")
    timestamp: str
    version: str
    cache: CacheSummary
    store: dict[str, Any]


class ProbeResponse(BaseModel):
    status: str
    timestamp: str
    checks: dict[str, Any] | None = None
