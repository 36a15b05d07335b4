from .responses import (
    CacheEntriesResponse,
    CacheEntryInfo,
    CacheStatsResponse,
    CacheSummary,
    HealthResponse,
    ManifestCatalogueResponse,
    ManifestLink,
    ProbeResponse,
    WebhookResponse,
)

__all__ = [
    "CacheEntriesResponse",
    "CacheEntryInfo",
    "CacheStatsResponse",
    "CacheSummary",
    "HealthResponse",
    "ManifestCatalogueResponse",
    "ManifestLink",
    "ProbeResponse",
    "WebhookResponse",
]
