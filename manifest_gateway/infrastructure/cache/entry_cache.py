#!/usr/bin/env python3
"""
Cache Entry Tier

Stores CacheEntry objects in a KeyValueStore with the freshness and
stale-while-revalidate windows applied. Both cache tiers are instances of
this class; they differ only in the key they use and the store they sit on.

Author: System Architect
Date: 2025-12-13
"""

import time
from collections.abc import Callable
from dataclasses import replace

from manifest_gateway.core.config.constants import Stage
from manifest_gateway.core.logging.logger import get_logger, log_stage
from manifest_gateway.core.models import CacheEntry, ManifestRecord
from manifest_gateway.infrastructure.cache.store import KeyValueStore

logger = get_logger(__name__)


class EntryCache:
    """
    One cache tier.

    Entries are written whole with a single ``set``; the store-level TTL is
    the time until ``stale_until`` so expired-and-unservable entries are
    dropped by the store itself.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int,
        stale_seconds: int,
        tier: str,
        clock: Callable[[], float] | None = None,
    ):
        self._store = store
        self._ttl = ttl_seconds
        self._stale = stale_seconds
        self._tier = tier
        self._clock = clock or time.time

    @property
    def tier(self) -> str:
        return self._tier

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    @property
    def stale_seconds(self) -> int:
        return self._stale

    def now(self) -> float:
        return self._clock()

    async def get(self, key: str) -> CacheEntry | None:
        """
        Return the entry while it is still servable (fresh or stale).

        Corrupt blobs are deleted and reported as a miss.
        """
        raw = await self._store.get(key)
        if raw is None:
            return None

        try:
            entry = CacheEntry.deserialize(raw)
        except ValueError as e:
            log_stage(
                logger, Stage.CACHE_LOOKUP, "Discarding malformed cache entry",
                level="warning", tier=self._tier, key=key, error=str(e),
            )
            await self._store.delete(key)
            return None

        if not entry.is_servable(self._clock()):
            return None
        return entry

    async def put(self, key: str, record: ManifestRecord) -> CacheEntry:
        now = self._clock()
        entry = CacheEntry.from_record(key, record, self._ttl, self._stale, now)
        await self._store.set(key, entry.serialize(), entry.store_ttl(now))
        log_stage(
            logger, Stage.CACHE_STORE, "Cache entry stored",
            level="debug", tier=self._tier, key=key, etag=entry.etag,
        )
        return entry

    async def put_entry(self, key: str, entry: CacheEntry) -> CacheEntry:
        """Copy an entry from another tier, keeping its original expiry."""
        now = self._clock()
        if not entry.is_servable(now):
            return entry
        copied = replace(entry, key=key)
        await self._store.set(key, copied.serialize(), copied.store_ttl(now))
        return copied

    async def delete(self, key: str) -> bool:
        return await self._store.delete(key)

    async def keys(self, pattern: str = "*") -> list[str]:
        return await self._store.keys(pattern)
