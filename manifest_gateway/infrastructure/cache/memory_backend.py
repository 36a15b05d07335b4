#!/usr/bin/env python3
"""
In-Process Key-Value Backend

Bounded LRU map with per-entry expiry. Serves three roles:
- fallback for the Redis tier when Redis is missing or unreachable
- storage for the edge response tier
- rate limiter counters when no Redis is configured

Author: System Architect
Date: 2025-12-13
"""

import asyncio
import fnmatch
import math
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from manifest_gateway.core.logging.logger import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class MemoryBackend:
    """
    In-memory LRU storage with TTL.

    STAGE-2.1: In-process storage

    This is a per-process store, not shared across workers.

    Implementation Details:
    - OrderedDict for O(1) access and LRU ordering
    - asyncio.Lock around every mutation
    - Expired entries are dropped lazily on access and on keys()
    - Oldest entries are evicted once max_size is reached
    - Never raises: it is the store of last resort

    Why an injectable clock?
    - TTL expiry can be tested without sleeping
    """

    name = "memory"

    def __init__(self, max_size: int = 1000, clock: Clock | None = None):
        """
        Args:
            max_size: Maximum number of entries to keep
            clock: Callable returning the current time in seconds
        """
        self._max_size = max_size
        self._clock = clock or time.time
        # key -> (value, expires_at or None)
        self._data: OrderedDict[str, tuple[bytes, float | None]] = OrderedDict()
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    def _is_expired(self, expires_at: float | None, now: float) -> bool:
        return expires_at is not None and expires_at <= now

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, expires_at = item
            if self._is_expired(expires_at, self._clock()):
                del self._data[key]
                return None
            self._data.move_to_end(key)
            return value

    async def set(self, key: str, value: bytes, ttl_seconds: int | None = None) -> bool:
        expires_at = None
        if ttl_seconds is not None:
            if ttl_seconds <= 0:
                await self.delete(key)
                return True
            expires_at = self._clock() + ttl_seconds

        async with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            self._data[key] = (value, expires_at)

            while len(self._data) > self._max_size:
                evicted, _ = self._data.popitem(last=False)
                logger.debug("Evicted least recently used entry", key=evicted)
        return True

    async def delete(self, *keys: str) -> int:
        deleted = 0
        async with self._lock:
            for key in keys:
                if self._data.pop(key, None) is not None:
                    deleted += 1
        return deleted

    async def keys(self, pattern: str = "*") -> list[str]:
        now = self._clock()
        async with self._lock:
            expired = [k for k, (_, exp) in self._data.items() if self._is_expired(exp, now)]
            for key in expired:
                del self._data[key]
            return [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]

    async def ttl(self, key: str) -> int | None:
        async with self._lock:
            item = self._data.get(key)
        if item is None:
            return None
        _, expires_at = item
        if expires_at is None:
            return None
        remaining = expires_at - self._clock()
        return max(0, math.ceil(remaining))

    async def clear(self) -> None:
        async with self._lock:
            self._data.clear()

    def get_size(self) -> int:
        return len(self._data)

    async def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "backend": self.name,
            "entries": len(self._data),
            "max_entries": self._max_size,
        }
