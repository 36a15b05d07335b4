"""
Cache Backend Protocol

This module defines the protocol every key-value backend implements, so the
resilient store and the rate limiter can run on Redis or on the in-process
map without knowing which.

Architectural Decision: Protocol-based abstraction
- Two implementations (RedisBackend, MemoryBackend) behind one interface
- Facilitates testing with in-memory and failing implementations
- Runtime checking with @runtime_checkable

Values are raw bytes; serialization is the caller's concern.

Author: System Architect
Date: 2025-12-08
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """
    Protocol defining the interface for key-value backend implementations.

    Implementations:
    - RedisBackend: Shared persistent store (raises CacheError on failure)
    - MemoryBackend: Bounded in-process LRU map (never raises)
    """

    name: str

    async def connect(self) -> None:
        """
        Establish connection to the backend.

        Raises:
            CacheConnectionError: If connection fails
        """
        ...

    async def disconnect(self) -> None:
        """Close connection to the backend."""
        ...

    async def ping(self) -> bool:
        """Return True when the backend answers."""
        ...

    async def get(self, key: str) -> bytes | None:
        """
        Get value by key.

        Returns:
            The stored bytes or None if absent or expired

        Raises:
            CacheKeyError: If the operation fails
        """
        ...

    async def set(self, key: str, value: bytes, ttl_seconds: int | None = None) -> bool:
        """
        Store a value, replacing any previous one (last write wins).

        Args:
            key: Cache key
            value: Value to store
            ttl_seconds: Expiry in seconds; None keeps the value until evicted

        Raises:
            CacheKeyError: If the operation fails
        """
        ...

    async def delete(self, *keys: str) -> int:
        """
        Delete keys.

        Returns:
            Number of keys that existed and were removed
        """
        ...

    async def keys(self, pattern: str = "*") -> list[str]:
        """List live keys matching a glob pattern."""
        ...

    async def ttl(self, key: str) -> int | None:
        """Seconds until the key expires, or None if absent or persistent."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Backend health summary with at least a ``status`` field."""
        ...
