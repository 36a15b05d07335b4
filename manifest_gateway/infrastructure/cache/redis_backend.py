"""
Redis Key-Value Backend

Architecture:
    RedisBackend (CacheBackend implementation)
        ├── ConnectionManager (Connection lifecycle with retried connect)
        └── health_check (ping latency)

Every operation maps redis errors onto CacheKeyError so callers deal with a
single exception family. The resilient KeyValueStore above this class is
what turns those errors into fallback reads and writes.

Author: System Architect
Date: 2025-12-13
"""

import time
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from manifest_gateway.core.config.constants import Stage
from manifest_gateway.core.exceptions import CacheConnectionError, CacheKeyError
from manifest_gateway.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# =============================================================================


class ConnectionManager:
    """
    Manages the Redis connection lifecycle.

    Connect is retried with exponential backoff (100 ms growing to a 3 s cap)
    for a bounded number of attempts; after that the gateway starts in
    degraded mode on the in-process store instead of refusing to boot.
    """

    def __init__(
        self,
        url: str,
        socket_timeout: float = 2.0,
        connect_attempts: int = 3,
        client: redis.Redis | None = None,
    ):
        self._url = url
        self._socket_timeout = socket_timeout
        self._connect_attempts = connect_attempts
        self._client = client
        self._is_connected = False

    async def connect(self) -> redis.Redis:
        """
        Establish the connection and verify it with PING.

        STAGE-S.1: Connection establishment

        Raises:
            CacheConnectionError: If every attempt fails
        """
        if self._is_connected and self._client:
            return self._client

        if self._client is None:
            self._client = redis.Redis.from_url(
                self._url,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_timeout,
                retry_on_timeout=True,
                decode_responses=False,  # Values are raw bytes
            )

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._connect_attempts),
                wait=wait_exponential(multiplier=0.1, max=3),
                retry=retry_if_exception_type(RedisError),
                before_sleep=lambda retry_state: logger.info(
                    "Redis connect retry",
                    stage=Stage.STORE.value,
                    attempt=retry_state.attempt_number,
                ),
            ):
                with attempt:
                    await self._client.ping()
        except (RetryError, RedisError) as e:
            log_stage(logger, Stage.STORE, "Failed to connect to Redis", level="error", error=str(e))
            raise CacheConnectionError(
                f"Failed to connect to Redis: {e}",
                details={"attempts": self._connect_attempts},
            ) from e

        self._is_connected = True
        log_stage(logger, Stage.STORE, "Redis connected successfully")
        return self._client

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        self._is_connected = False
        logger.info("Redis disconnected", stage=Stage.STORE.value)

    def get_client(self) -> redis.Redis | None:
        return self._client

    def is_connected(self) -> bool:
        return self._is_connected


# =============================================================================
# LAYER 2: PUBLIC API
# =============================================================================


class RedisBackend:
    """
    Redis implementation of the CacheBackend protocol.

    Usage:
        backend = RedisBackend("redis://localhost:6379/0")
        await backend.connect()
        await backend.set("manifest:concert", b"{...}", ttl_seconds=4200)
    """

    name = "redis"

    def __init__(
        self,
        url: str,
        socket_timeout: float = 2.0,
        connect_attempts: int = 3,
        client: redis.Redis | None = None,
    ):
        self._conn_mgr = ConnectionManager(
            url, socket_timeout=socket_timeout, connect_attempts=connect_attempts, client=client
        )

    @property
    def is_connected(self) -> bool:
        return self._conn_mgr.is_connected()

    async def connect(self) -> None:
        await self._conn_mgr.connect()

    async def disconnect(self) -> None:
        await self._conn_mgr.disconnect()

    def _client(self) -> redis.Redis:
        client = self._conn_mgr.get_client()
        if client is None:
            raise CacheConnectionError("Redis client not initialized")
        return client

    async def ping(self) -> bool:
        try:
            return bool(await self._client().ping())
        except (RedisError, CacheConnectionError):
            return False

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._client().get(key)
        except RedisError as e:
            logger.error("Redis GET failed", stage="REDIS.GET", key=key, error=str(e))
            raise CacheKeyError(f"Failed to get key: {key}", details={"error": str(e)}) from e

    async def set(self, key: str, value: bytes, ttl_seconds: int | None = None) -> bool:
        try:
            if ttl_seconds is not None and ttl_seconds <= 0:
                await self._client().delete(key)
                return True
            return bool(await self._client().set(key, value, ex=ttl_seconds))
        except RedisError as e:
            logger.error("Redis SET failed", stage="REDIS.SET", key=key, error=str(e))
            raise CacheKeyError(f"Failed to set key: {key}", details={"error": str(e)}) from e

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self._client().delete(*keys))
        except RedisError as e:
            logger.error("Redis DELETE failed", stage="REDIS.DELETE", keys=keys, error=str(e))
            raise CacheKeyError("Failed to delete keys", details={"keys": list(keys)}) from e

    async def keys(self, pattern: str = "*") -> list[str]:
        try:
            found = []
            async for key in self._client().scan_iter(match=pattern, count=100):
                found.append(key.decode() if isinstance(key, bytes) else key)
            return found
        except RedisError as e:
            logger.error("Redis SCAN failed", stage="REDIS.SCAN", pattern=pattern, error=str(e))
            raise CacheKeyError(f"Failed to scan keys: {pattern}", details={"error": str(e)}) from e

    async def ttl(self, key: str) -> int | None:
        try:
            remaining = await self._client().ttl(key)
        except RedisError as e:
            logger.error("Redis TTL failed", stage="REDIS.TTL", key=key, error=str(e))
            raise CacheKeyError(f"Failed to get TTL: {key}", details={"error": str(e)}) from e
        # -2: missing key, -1: no expiry
        return remaining if remaining >= 0 else None

    async def health_check(self) -> dict[str, Any]:
        """
        STAGE-S.HEALTH: Redis health check

        Returns:
            Dict with status, connection flag and ping latency
        """
        health: dict[str, Any] = {
            "status": "healthy",
            "backend": self.name,
            "connected": self.is_connected,
            "ping_latency_ms": None,
        }
        client = self._conn_mgr.get_client()
        if client is None:
            health["status"] = "unhealthy"
            health["error"] = "Client not initialized"
            return health

        try:
            start = time.perf_counter()
            await client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except RedisError as e:
            health["status"] = "unhealthy"
            health["error"] = str(e)
        return health
