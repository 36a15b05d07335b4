"""
Store Test Factory

Key-value backends with controllable failure behavior.
"""

from typing import Any

from manifest_gateway.core.exceptions import CacheConnectionError
from manifest_gateway.infrastructure.cache.memory_backend import MemoryBackend


class FlakyBackend(MemoryBackend):
    """
    Stand-in for the Redis backend.

    Behaves like a MemoryBackend until ``failing`` is set, after which every
    operation raises CacheConnectionError the way RedisBackend does when the
    server is unreachable.
    """

    name = "redis"

    def __init__(self, failing: bool = False, clock=None):
        super().__init__(max_size=1000, clock=clock)
        self.failing = failing

    def _check(self, operation: str) -> None:
        if self.failing:
            raise CacheConnectionError(f"Redis unavailable during {operation}")

    async def connect(self) -> None:
        self._check("connect")

    async def get(self, key: str) -> bytes | None:
        self._check("get")
        return await super().get(key)

    async def set(self, key: str, value: bytes, ttl_seconds: int | None = None) -> bool:
        self._check("set")
        return await super().set(key, value, ttl_seconds)

    async def delete(self, *keys: str) -> int:
        self._check("delete")
        return await super().delete(*keys)

    async def keys(self, pattern: str = "*") -> list[str]:
        self._check("keys")
        return await super().keys(pattern)

    async def ttl(self, key: str) -> int | None:
        self._check("ttl")
        return await super().ttl(key)

    async def health_check(self) -> dict[str, Any]:
        if self.failing:
            return {"status": "unhealthy", "backend": self.name, "error": "unreachable"}
        return {**(await super().health_check()), "backend": self.name}
