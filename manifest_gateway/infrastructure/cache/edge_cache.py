"""
Edge Response Cache

HTTP-level response tier in front of the key-value tier. Entries are keyed
by the canonical upstream URL, so two manifest types that share an upstream
document (portfolio and universal) share one edge entry.
"""

from manifest_gateway.core.models import CacheEntry, ManifestRecord
from manifest_gateway.infrastructure.cache.entry_cache import EntryCache
from manifest_gateway.infrastructure.cache.etag import cache_control


class EdgeResponseCache(EntryCache):
    """Response tier keyed by upstream URL."""

    def __init__(self, store, ttl_seconds, stale_seconds, clock=None):
        super().__init__(store, ttl_seconds, stale_seconds, tier="edge", clock=clock)

    @property
    def cache_control(self) -> str:
        return cache_control(self.ttl_seconds, self.stale_seconds)

    async def lookup(self, url: str) -> CacheEntry | None:
        return await self.get(url)

    async def store_response(self, url: str, record: ManifestRecord) -> CacheEntry:
        return await self.put(url, record)

    async def purge(self, url: str) -> bool:
        return await self.delete(url)
