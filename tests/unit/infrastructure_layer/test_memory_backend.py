"""
Unit Tests for MemoryBackend

Tests LRU eviction, TTL expiry and pattern listing of the in-process store.
"""

import pytest

from manifest_gateway.core.interfaces.cache import CacheBackend
from manifest_gateway.infrastructure.cache.memory_backend import MemoryBackend


@pytest.mark.unit
class TestMemoryBackend:
    """Test suite for MemoryBackend."""

    def test_implements_cache_backend_protocol(self, memory_backend):
        """Test that MemoryBackend satisfies the CacheBackend protocol."""
        assert isinstance(memory_backend, CacheBackend)

    @pytest.mark.asyncio
    async def test_set_and_get(self, memory_backend):
        """Test basic storage."""
        await memory_backend.set("k", b"v")

        assert await memory_backend.get("k") == b"v"
        assert await memory_backend.get("missing") is None

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, memory_backend, clock):
        """Test lazy expiry on read."""
        await memory_backend.set("k", b"v", ttl_seconds=10)

        clock.advance(9.9)
        assert await memory_backend.get("k") == b"v"

        clock.advance(0.1)
        assert await memory_backend.get("k") is None
        assert memory_backend.get_size() == 0

    @pytest.mark.asyncio
    async def test_non_positive_ttl_deletes(self, memory_backend):
        """Test that writing with ttl <= 0 removes the key."""
        await memory_backend.set("k", b"v")
        await memory_backend.set("k", b"v2", ttl_seconds=0)

        assert await memory_backend.get("k") is None

    @pytest.mark.asyncio
    async def test_least_recently_used_evicted(self, clock):
        """Test that the oldest untouched key is evicted at capacity."""
        backend = MemoryBackend(max_size=2, clock=clock)
        await backend.set("a", b"1")
        await backend.set("b", b"2")
        await backend.get("a")

        await backend.set("c", b"3")

        assert await backend.get("b") is None
        assert await backend.get("a") == b"1"
        assert await backend.get("c") == b"3"

    @pytest.mark.asyncio
    async def test_delete_counts_removed_keys(self, memory_backend):
        """Test that delete reports how many keys existed."""
        await memory_backend.set("a", b"1")
        await memory_backend.set("b", b"2")

        assert await memory_backend.delete("a", "b", "c") == 2
        assert await memory_backend.delete("a") == 0

    @pytest.mark.asyncio
    async def test_keys_pattern_skips_expired(self, memory_backend, clock):
        """Test glob listing and that expired keys are not listed."""
        await memory_backend.set("manifest:concert", b"1")
        await memory_backend.set("manifest:events", b"2", ttl_seconds=5)
        await memory_backend.set("ratelimit:1.2.3.4", b"3")

        assert sorted(await memory_backend.keys("manifest:*")) == [
            "manifest:concert",
            "manifest:events",
        ]

        clock.advance(5)
        assert await memory_backend.keys("manifest:*") == ["manifest:concert"]

    @pytest.mark.asyncio
    async def test_ttl_reports_remaining_seconds(self, memory_backend, clock):
        """Test remaining lifetime, rounded up."""
        await memory_backend.set("k", b"v", ttl_seconds=10)
        clock.advance(2.5)

        assert await memory_backend.ttl("k") == 8
        assert await memory_backend.ttl("missing") is None

    @pytest.mark.asyncio
    async def test_clear_and_health(self, memory_backend):
        """Test clear() and the health report."""
        await memory_backend.set("k", b"v")
        health = await memory_backend.health_check()

        assert health["status"] == "healthy"
        assert health["entries"] == 1

        await memory_backend.clear()
        assert memory_backend.get_size() == 0
