"""
Manifest Service - Cache Policy
===============================

WHAT IS THIS SERVICE?
---------------------
The single place that decides where a manifest comes from:

    Edge tier (keyed by upstream URL)
        -> Key-value tier (manifest:<type>)
            -> Upstream fetch

Both tiers hold the same CacheEntry shape with two deadlines:

    fetched ── expires_at ──────────── stale_until
       fresh: serve as HIT   stale: serve only if the refetch fails

STATE MACHINE (per manifest type)
---------------------------------
    MISS -> FETCHING -> CACHED -> STALE -> REVALIDATING -> CACHED
    any cached state -> PURGED -> MISS

FAILURE SEMANTICS
-----------------
- Upstream failure with a servable stale copy: serve it (X-Cache: STALE),
  log, keep the copy.
- Upstream failure with nothing cached: raise (502 at the HTTP layer).
- Upstream 404: raise even if a stale copy exists; removed content is not
  resurrected from cache.
- Cache store failures never reach this layer; KeyValueStore absorbs them.

Revalidation happens inline on the request that finds the entry expired;
there are no background tasks and concurrent misses may fetch twice.
"""

import time
from typing import Any

from manifest_gateway.core.config.constants import CacheState, CacheStatus, Stage
from manifest_gateway.core.config.manifests import ManifestRegistry
from manifest_gateway.core.exceptions import InvalidPayloadError, UpstreamError
from manifest_gateway.core.logging import get_logger, log_stage
from manifest_gateway.core.models import CachedManifest, CacheEntry, ManifestRecord
from manifest_gateway.infrastructure.cache.edge_cache import EdgeResponseCache
from manifest_gateway.infrastructure.cache.entry_cache import EntryCache
from manifest_gateway.infrastructure.monitoring.metrics_collector import CacheMetrics
from manifest_gateway.infrastructure.upstream.fetcher import UpstreamFetcher

logger = get_logger(__name__)


class ManifestService:
    """
    Cache policy for manifest reads and the primitives invalidation uses.

    Usage:
        service = ManifestService(registry, fetcher, edge, kv, metrics)
        result = await service.get_manifest("concert")
        result.cache_status  # CacheStatus.MISS on first call, HIT afterwards
    """

    def __init__(
        self,
        registry: ManifestRegistry,
        fetcher: UpstreamFetcher,
        edge: EdgeResponseCache,
        kv: EntryCache,
        metrics: CacheMetrics,
    ):
        self._registry = registry
        self._fetcher = fetcher
        self._edge = edge
        self._kv = kv
        self._metrics = metrics
        # Observational only: read by state_of()/inspect(), never by the read
        # path, which consults nothing but the cache stores. Per process.
        self._transient: dict[str, CacheState] = {}
        self._purged: set[str] = set()

    @property
    def registry(self) -> ManifestRegistry:
        return self._registry

    @property
    def cache_control(self) -> str:
        return self._edge.cache_control

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_manifest(self, manifest_type: str) -> CachedManifest:
        """
        Resolve a manifest through the cache tiers.

        STAGE-2.0: Cache lookup

        Raises:
            UnknownManifestTypeError: Type not in the catalogue
            ConfigurationError: No upstream base URL configured
            ManifestNotFoundError: Upstream 404
            UpstreamError / InvalidPayloadError: Fetch failed and nothing servable is cached
        """
        name = self._registry.require(manifest_type)
        url = self._registry.source_url(name)
        key = self._registry.cache_key(name)
        now = self._edge.now()

        edge_entry = await self._edge.lookup(url)
        if edge_entry is not None and edge_entry.is_fresh(now):
            self._metrics.increment("hits")
            log_stage(logger, Stage.EDGE_LOOKUP, "Edge cache hit", level="debug", type=name)
            return self._result(edge_entry, CacheStatus.HIT, name)

        kv_entry = await self._kv.get(key)
        if kv_entry is not None and kv_entry.is_fresh(now):
            self._metrics.increment("hits")
            await self._edge.put_entry(url, kv_entry)
            log_stage(logger, Stage.KV_LOOKUP, "Key-value cache hit", level="debug", type=name)
            return self._result(kv_entry, CacheStatus.HIT, name)

        self._metrics.increment("misses")
        stale = self._newest(edge_entry, kv_entry)
        self._transient[name] = CacheState.REVALIDATING if stale else CacheState.FETCHING
        log_stage(
            logger, Stage.CACHE_LOOKUP, "Cache miss",
            type=name, state=self._transient[name].value,
        )

        try:
            record = await self._fetch(name)
        except (UpstreamError, InvalidPayloadError) as e:
            if stale is None:
                raise
            self._metrics.record_stale_served(name)
            log_stage(
                logger, Stage.CACHE_LOOKUP, "Upstream failed, serving stale entry",
                level="warning", type=name, error=e.error_code,
                stale_for_s=round(now - stale.expires_at, 1),
            )
            return self._result(stale, CacheStatus.STALE, name)
        finally:
            self._transient.pop(name, None)

        await self.store(name, record)
        return CachedManifest(record=record, cache_status=CacheStatus.MISS, state=CacheState.CACHED)

    def _result(self, entry: CacheEntry, status: CacheStatus, name: str) -> CachedManifest:
        record = entry.to_record()
        if record.type != name:
            # Shared upstream document (portfolio / universal)
            record = ManifestRecord(
                type=name,
                payload=record.payload,
                fetched_at=record.fetched_at,
                etag=record.etag,
                source_url=record.source_url,
                body=record.body,
            )
        state = CacheState.CACHED if status is CacheStatus.HIT else CacheState.STALE
        return CachedManifest(record=record, cache_status=status, state=state)

    @staticmethod
    def _newest(*entries: CacheEntry | None) -> CacheEntry | None:
        servable = [entry for entry in entries if entry is not None]
        if not servable:
            return None
        return max(servable, key=lambda entry: entry.fetched_at)

    async def _fetch(self, name: str) -> ManifestRecord:
        started = time.perf_counter()
        try:
            record = await self._fetcher.fetch(name)
        except Exception as e:
            outcome = getattr(e, "error_code", e.__class__.__name__)
            self._metrics.record_upstream_fetch(outcome, time.perf_counter() - started)
            raise
        self._metrics.record_upstream_fetch("success", time.perf_counter() - started)
        return record

    # ------------------------------------------------------------------
    # Primitives used by the invalidation controller
    # ------------------------------------------------------------------

    async def store(self, name: str, record: ManifestRecord) -> CacheEntry:
        """Replace the entry in both tiers."""
        entry = await self._kv.put(self._registry.cache_key(name), record)
        await self._edge.store_response(record.source_url, record)
        self._purged.discard(name)
        self._metrics.set_store_degraded(self._kv.store.degraded)
        return entry

    async def fetch_and_store(self, manifest_type: str) -> ManifestRecord:
        """
        Force a fetch and store regardless of cache state.

        Raises the fetcher's errors unchanged.
        """
        name = self._registry.require(manifest_type)
        self._transient[name] = CacheState.FETCHING
        try:
            record = await self._fetch(name)
        finally:
            self._transient.pop(name, None)
        await self.store(name, record)
        return record

    async def evict(self, manifest_type: str) -> dict[str, Any]:
        """
        Delete the entry from both tiers.

        The edge entry is keyed by upstream URL and shared by every type
        served from that document, so their key-value entries go too;
        otherwise the next read of a sibling type would copy the purged
        content back into the shared edge slot.

        When no base URL is configured there can be no edge entry, so only
        the key-value entries are removed.
        """
        name = self._registry.require(manifest_type)
        key = self._registry.cache_key(name)
        url = None
        if self._registry.base_url:
            url = self._registry.source_url(name)

        siblings = self._registry.types_sharing(name)
        kv_deleted = False
        for sibling in siblings:
            if await self._kv.delete(self._registry.cache_key(sibling)):
                kv_deleted = True
        edge_deleted = await self._edge.purge(url) if url else False
        self._purged.update(siblings)

        result = {
            "type": name,
            "key": key,
            "url": url,
            "deleted": kv_deleted or edge_deleted,
        }
        if len(siblings) > 1:
            result["shared_with"] = [sibling for sibling in siblings if sibling != name]
        return result

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    async def state_of(self, manifest_type: str) -> CacheState:
        name = self._registry.require(manifest_type)
        if name in self._transient:
            return self._transient[name]
        entry = await self._kv.get(self._registry.cache_key(name))
        if entry is not None:
            return entry.state(self._kv.now())
        if name in self._purged:
            return CacheState.PURGED
        return CacheState.MISS

    async def inspect(self) -> list[dict[str, Any]]:
        """Per-type view of the key-value tier."""
        now = self._kv.now()
        entries = []
        for name in self._registry.types:
            key = self._registry.cache_key(name)
            entry = await self._kv.get(key)
            state = await self.state_of(name)
            if entry is None:
                entries.append({"type": name, "key": key, "state": state.value, "cached": False})
                continue

            record = entry.to_record()
            entries.append(
                {
                    "type": name,
                    "key": key,
                    "state": state.value,
                    "cached": True,
                    "etag": entry.etag,
                    "item_count": record.item_count,
                    "size_bytes": len(entry.value),
                    "fresh_for_seconds": max(0, int(entry.expires_at - now)),
                    "ttl_seconds": max(0, int(entry.stale_until - now)),
                    "fetched_at": entry.fetched_at,
                    "source_url": entry.source_url,
                }
            )
        return entries
