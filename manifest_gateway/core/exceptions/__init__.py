"""
Exception Module

Structured exception hierarchy for the manifest gateway. Every exception
knows its HTTP status (``status_code``) and error kind (``error_code``), so
the API layer renders all of them through one handler.

Module Structure:
-----------------
- **base.py**: ManifestGatewayError base class + ConfigurationError
- **cache.py**: Key-value backend exceptions (never surfaced to clients)
- **manifest.py**: Catalogue and upstream fetch exceptions
- **auth.py**: Webhook authentication exceptions
- **rate_limit.py**: Rate limiting exceptions

Usage:
------
```python
from manifest_gateway.core.exceptions import UpstreamError, ManifestNotFoundError
```

Author: System Architect
Date: 2025-12-08
"""

# Base exception
from manifest_gateway.core.exceptions.base import (
    ConfigurationError,
    ManifestGatewayError,
    utc_timestamp,
)

# Authentication exceptions
from manifest_gateway.core.exceptions.auth import UnauthorizedError

# Cache exceptions
from manifest_gateway.core.exceptions.cache import CacheConnectionError, CacheError, CacheKeyError

# Manifest / upstream exceptions
from manifest_gateway.core.exceptions.manifest import (
    InvalidPayloadError,
    ManifestNotFoundError,
    UnknownManifestTypeError,
    UpstreamError,
    UpstreamUnavailableError,
)

# Rate limit exceptions
from manifest_gateway.core.exceptions.rate_limit import RateLimitExceededError

__all__ = [
    # Base
    "ManifestGatewayError",
    "ConfigurationError",
    "utc_timestamp",
    # Auth
    "UnauthorizedError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    # Manifest / upstream
    "ManifestNotFoundError",
    "UnknownManifestTypeError",
    "UpstreamError",
    "UpstreamUnavailableError",
    "InvalidPayloadError",
    # Rate limit
    "RateLimitExceededError",
]
