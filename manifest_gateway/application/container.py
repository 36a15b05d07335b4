"""
Component Container

Builds every gateway component from Settings and owns their lifecycle.
create_app() builds one container per application; tests build their own
with a fake clock, a mocked upstream transport or a failing Redis backend.

Wiring:
    KeyValueStore(RedisBackend?, MemoryBackend)  -> key-value tier
    KeyValueStore(None, MemoryBackend)           -> edge tier
    RedisBackend or MemoryBackend                -> rate limiter counters
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from manifest_gateway.application.services.invalidation_service import InvalidationService
from manifest_gateway.application.services.manifest_service import ManifestService
from manifest_gateway.core.config.constants import Stage
from manifest_gateway.core.config.manifests import ManifestRegistry
from manifest_gateway.core.config.origins import OriginAllowList
from manifest_gateway.core.config.settings import Settings
from manifest_gateway.core.interfaces.cache import CacheBackend
from manifest_gateway.core.logging import get_logger, log_stage
from manifest_gateway.infrastructure.cache.edge_cache import EdgeResponseCache
from manifest_gateway.infrastructure.cache.entry_cache import EntryCache
from manifest_gateway.infrastructure.cache.memory_backend import MemoryBackend
from manifest_gateway.infrastructure.cache.redis_backend import RedisBackend
from manifest_gateway.infrastructure.cache.store import KeyValueStore
from manifest_gateway.infrastructure.monitoring.metrics_collector import CacheMetrics
from manifest_gateway.infrastructure.upstream.fetcher import UpstreamFetcher
from manifest_gateway.rate_limiting.rate_limiter import WindowRateLimiter

logger = get_logger(__name__)


@dataclass
class GatewayContainer:
    settings: Settings
    registry: ManifestRegistry
    origins: OriginAllowList
    metrics: CacheMetrics
    kv_store: KeyValueStore
    edge_store: KeyValueStore
    fetcher: UpstreamFetcher
    manifests: ManifestService
    invalidation: InvalidationService
    rate_limiter: WindowRateLimiter
    started_at: float

    @classmethod
    def build(
        cls,
        settings: Settings,
        clock: Callable[[], float] | None = None,
        http_client: httpx.AsyncClient | None = None,
        redis_backend: CacheBackend | None = None,
    ) -> "GatewayContainer":
        """
        Assemble the component graph.

        Args:
            settings: Application settings
            clock: Time source shared by every TTL and window computation
            http_client: Upstream client override (tests pass a MockTransport client)
            redis_backend: Primary backend override; defaults to RedisBackend when
                REDIS_URL is set and to no primary otherwise
        """
        clock = clock or time.time
        max_entries = settings.cache.CACHE_MEMORY_MAX_ENTRIES

        if redis_backend is None and settings.redis.REDIS_URL:
            redis_backend = RedisBackend(
                settings.redis.REDIS_URL,
                socket_timeout=settings.redis.REDIS_SOCKET_TIMEOUT,
                connect_attempts=settings.redis.REDIS_CONNECT_ATTEMPTS,
            )

        registry = ManifestRegistry.from_settings(settings)
        metrics = CacheMetrics(clock=clock)

        kv_store = KeyValueStore(
            primary=redis_backend,
            fallback=MemoryBackend(max_size=max_entries, clock=clock),
            name="kv",
        )
        edge_store = KeyValueStore(
            primary=None,
            fallback=MemoryBackend(max_size=max_entries, clock=clock),
            name="edge",
        )

        ttl = settings.cache.CACHE_TTL_SECONDS
        stale = settings.cache.CACHE_STALE_WHILE_REVALIDATE_SECONDS
        edge = EdgeResponseCache(edge_store, ttl, stale, clock=clock)
        kv = EntryCache(kv_store, ttl, stale, tier="kv", clock=clock)

        fetcher = UpstreamFetcher(
            registry,
            timeout_seconds=settings.upstream.UPSTREAM_TIMEOUT_SECONDS,
            client=http_client,
            clock=clock,
        )
        manifests = ManifestService(registry, fetcher, edge, kv, metrics)
        invalidation = InvalidationService(manifests, metrics)

        limiter_backend = redis_backend or MemoryBackend(max_size=max(max_entries, 10_000), clock=clock)
        rate_limiter = WindowRateLimiter(
            limiter_backend,
            limit=settings.rate_limit.RATE_LIMIT_REQUESTS,
            window_ms=settings.rate_limit.RATE_LIMIT_WINDOW_MS,
            clock=clock,
        )

        return cls(
            settings=settings,
            registry=registry,
            origins=OriginAllowList.parse(settings.ALLOWED_ORIGINS),
            metrics=metrics,
            kv_store=kv_store,
            edge_store=edge_store,
            fetcher=fetcher,
            manifests=manifests,
            invalidation=invalidation,
            rate_limiter=rate_limiter,
            started_at=clock(),
        )

    async def startup(self) -> None:
        """
        STAGE-0.0: Connect external resources.

        A Redis outage at startup is not fatal: the key-value tier starts in
        degraded mode and the rate limiter fails open.
        """
        await self.kv_store.connect()
        self.metrics.set_store_degraded(self.kv_store.degraded)
        log_stage(
            logger, Stage.INITIALIZATION, "Gateway components ready",
            store_backend=self.kv_store.backend_name,
            degraded=self.kv_store.degraded,
            manifest_types=list(self.registry.types),
            origin_rules=len(self.origins),
        )

    async def shutdown(self) -> None:
        await self.fetcher.close()
        await self.kv_store.close()
        log_stage(logger, Stage.CLEANUP, "Gateway components closed")
