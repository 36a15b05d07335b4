#!/usr/bin/env python3
"""
Resilient Key-Value Store

Architecture:
    KeyValueStore (Public API, never raises)
        ├── primary: CacheBackend (Redis) - optional
        └── fallback: MemoryBackend (in-process)

Degraded mode:
    When the primary is missing or raises CacheError, reads and writes are
    served by the fallback map and a single warning is logged for the
    transition. The next successful primary call logs the recovery.

Guarantees:
    - get/set/delete/keys never raise backend errors to callers
    - delete always clears the fallback too, so a purge during an outage
      cannot leave a stale copy behind in process memory
    - a delete the primary could not take is remembered and replayed before
      the next successful primary call, so a purge during an outage is not
      undone when the primary comes back
    - single logical value per key, last write wins

Author: System Architect
Date: 2025-12-13
"""

from typing import Any

from manifest_gateway.core.config.constants import Stage
from manifest_gateway.core.exceptions import CacheError
from manifest_gateway.core.interfaces.cache import CacheBackend
from manifest_gateway.core.logging.logger import get_logger, log_stage
from manifest_gateway.infrastructure.cache.memory_backend import MemoryBackend

logger = get_logger(__name__)


class KeyValueStore:
    """
    Key-value store that degrades to process memory instead of failing.

    Usage:
        store = KeyValueStore(primary=RedisBackend(url), fallback=MemoryBackend())
        await store.set("manifest:concert", data, ttl_seconds=4200)
        data = await store.get("manifest:concert")
    """

    def __init__(
        self,
        primary: CacheBackend | None = None,
        fallback: MemoryBackend | None = None,
        name: str = "kv",
    ):
        self._primary = primary
        self._fallback = fallback or MemoryBackend()
        self._name = name
        self._degraded = False
        self._pending_deletes: set[str] = set()

    @property
    def name(self) -> str:
        return self._name

    @property
    def degraded(self) -> bool:
        """True while a configured primary is failing and the fallback serves."""
        return self._primary is not None and self._degraded

    @property
    def backend_name(self) -> str:
        return self._primary.name if self._primary is not None else self._fallback.name

    def _mark_degraded(self, operation: str, key: str, error: Exception) -> None:
        if not self._degraded:
            log_stage(
                logger,
                Stage.STORE,
                "Primary store unavailable, serving from in-process fallback",
                level="warning",
                store=self._name,
                operation=operation,
                key=key,
                error=str(error),
            )
        self._degraded = True

    def _mark_healthy(self) -> None:
        if self._degraded:
            log_stage(logger, Stage.STORE, "Primary store recovered", store=self._name)
        self._degraded = False

    @property
    def pending_deletes(self) -> frozenset[str]:
        """Keys deleted during an outage that the primary still holds."""
        return frozenset(self._pending_deletes)

    async def _replay_deletes(self) -> None:
        """
        Apply deletes the primary missed while it was unreachable.

        Raises CacheError when the primary is still failing; the key stays
        pending until a later call succeeds.
        """
        for key in sorted(self._pending_deletes):
            await self._primary.delete(key)
            self._pending_deletes.discard(key)
            log_stage(
                logger, Stage.STORE, "Replayed delete missed during outage",
                store=self._name, key=key,
            )

    async def connect(self) -> None:
        """Connect the primary; on failure stay up in degraded mode."""
        if self._primary is None:
            return
        try:
            await self._primary.connect()
            self._mark_healthy()
        except CacheError as e:
            self._mark_degraded("connect", "", e)

    async def close(self) -> None:
        if self._primary is None:
            return
        try:
            await self._primary.disconnect()
        except CacheError as e:
            logger.warning("Error closing primary store", store=self._name, error=str(e))

    async def get(self, key: str) -> bytes | None:
        if self._primary is not None:
            try:
                await self._replay_deletes()
                value = await self._primary.get(key)
                self._mark_healthy()
                if value is not None:
                    return value
                # A write that landed in the fallback during an outage is
                # still visible after recovery until it expires.
                return await self._fallback.get(key)
            except CacheError as e:
                self._mark_degraded("get", key, e)
        return await self._fallback.get(key)

    async def set(self, key: str, value: bytes, ttl_seconds: int | None = None) -> bool:
        if self._primary is not None:
            try:
                await self._replay_deletes()
                stored = await self._primary.set(key, value, ttl_seconds)
                self._mark_healthy()
                await self._fallback.delete(key)
                return stored
            except CacheError as e:
                self._mark_degraded("set", key, e)
        return await self._fallback.set(key, value, ttl_seconds)

    async def delete(self, key: str) -> bool:
        """
        Delete from both backends. Returns True if either held the key.

        When the primary is unreachable the key is queued for deletion there;
        until the queue is replayed reads skip the primary copy.
        """
        deleted = False
        if self._primary is not None:
            try:
                await self._replay_deletes()
                deleted = await self._primary.delete(key) > 0
                self._mark_healthy()
            except CacheError as e:
                self._mark_degraded("delete", key, e)
                self._pending_deletes.add(key)
        fallback_deleted = await self._fallback.delete(key) > 0
        return deleted or fallback_deleted

    async def keys(self, pattern: str = "*") -> list[str]:
        fallback_keys = await self._fallback.keys(pattern)
        if self._primary is not None:
            try:
                await self._replay_deletes()
                primary_keys = await self._primary.keys(pattern)
                self._mark_healthy()
                return sorted(set(primary_keys) | set(fallback_keys))
            except CacheError as e:
                self._mark_degraded("keys", pattern, e)
        return sorted(fallback_keys)

    async def ttl(self, key: str) -> int | None:
        if self._primary is not None:
            try:
                await self._replay_deletes()
                remaining = await self._primary.ttl(key)
                self._mark_healthy()
                if remaining is not None:
                    return remaining
            except CacheError as e:
                self._mark_degraded("ttl", key, e)
        return await self._fallback.ttl(key)

    async def health_check(self) -> dict[str, Any]:
        """
        Health of the store.

        "degraded" means reads and writes are being served from process
        memory; the gateway still works but is not sharing cache state.
        """
        fallback_health = await self._fallback.health_check()
        if self._primary is None:
            return {
                "status": "healthy",
                "backend": self._fallback.name,
                "fallback_entries": fallback_health["entries"],
            }

        primary_health = await self._primary.health_check()
        status = "healthy" if primary_health.get("status") == "healthy" else "degraded"
        return {
            "status": status,
            "backend": self._primary.name,
            "primary": primary_health,
            "fallback_entries": fallback_health["entries"],
            "pending_deletes": len(self._pending_deletes),
        }
