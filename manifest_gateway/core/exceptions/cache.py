"""
Cache-Related Exceptions

Raised by key-value backends (Redis). The resilient store absorbs these, so
they never reach an HTTP client.

Author: System Architect
Date: 2025-12-08
"""

from manifest_gateway.core.exceptions.base import ManifestGatewayError


class CacheError(ManifestGatewayError):
    """Base exception for cache-related errors."""

    error_code = "cache_error"


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to the cache backend (Redis).

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect URL or credentials
    """

    pass


class CacheKeyError(CacheError):
    """
    Raised when a single cache key operation fails.

    Common causes:
    - Operation timeout
    - Connection dropped mid-command
    - Memory limit exceeded
    """

    pass
