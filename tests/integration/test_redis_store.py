"""
Integration Tests for the Redis-backed Key-Value Tier

Run against a real Redis server:

    USE_REAL_REDIS=1 TEST_REDIS_URL=redis://localhost:6379/15 pytest tests/integration
"""

import pytest

from manifest_gateway.infrastructure.cache.memory_backend import MemoryBackend
from manifest_gateway.infrastructure.cache.redis_backend import RedisBackend
from manifest_gateway.infrastructure.cache.store import KeyValueStore
from manifest_gateway.rate_limiting import WindowRateLimiter

pytestmark = pytest.mark.integration


@pytest.fixture
async def redis_backend(use_real_redis, redis_url):
    if not use_real_redis:
        pytest.skip("USE_REAL_REDIS not set")
    backend = RedisBackend(redis_url, connect_attempts=1)
    await backend.connect()
    await backend.delete(*(await backend.keys("itest:*")))
    yield backend
    await backend.delete(*(await backend.keys("itest:*")))
    await backend.disconnect()


@pytest.mark.asyncio
async def test_store_round_trip_with_expiry(redis_backend):
    """Test that values land in Redis with their TTL."""
    store = KeyValueStore(primary=redis_backend, fallback=MemoryBackend())
    await store.connect()

    await store.set("itest:manifest:concert", b'{"bands": []}', ttl_seconds=30)

    assert await redis_backend.get("itest:manifest:concert") == b'{"bands": []}'
    assert 0 < await store.ttl("itest:manifest:concert") <= 30
    assert store.degraded is False


@pytest.mark.asyncio
async def test_rate_limiter_counts_in_redis(redis_backend):
    """Test that the limiter shares its counter through Redis."""
    first = WindowRateLimiter(redis_backend, limit=2)
    second = WindowRateLimiter(redis_backend, limit=2)

    await first.check("itest-client")
    await second.check("itest-client")
    decision = await first.check("itest-client")

    assert decision.allowed is False
    await redis_backend.delete(first.key_for("itest-client"))
