"""
System Constants and Enumerations

This module defines constants and enumerations shared by the cache tiers,
the rate limiter and the HTTP layer.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for header names and key prefixes
- Type-safe enums for cache state management

Author: System Architect
Date: 2025-12-05
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Request processing stages used as the ``stage`` field of log entries.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}

    Examples:
        log_stage(logger, Stage.CACHE_LOOKUP, "Edge cache hit", type="concert")
    """

    # Main request lifecycle
    INITIALIZATION = "0.0_INITIALIZATION"
    ORIGIN_CHECK = "1.0_ORIGIN_CHECK"
    CACHE_LOOKUP = "2.0_CACHE_LOOKUP"
    EDGE_LOOKUP = "2.1_EDGE_CACHE_LOOKUP"
    KV_LOOKUP = "2.2_KV_CACHE_LOOKUP"
    RATE_LIMITING = "3.0_RATE_LIMITING"
    UPSTREAM_FETCH = "4.0_UPSTREAM_FETCH"
    CACHE_STORE = "5.0_CACHE_STORE"
    CLEANUP = "6.0_CLEANUP"

    # Cross-cutting concerns
    INVALIDATION = "I_INVALIDATION"
    WEBHOOK_AUTH = "W_WEBHOOK_AUTH"
    STORE = "S_KEY_VALUE_STORE"
    METRICS = "M_METRICS_COLLECTION"
    ERROR_RESPONSE = "E_ERROR_RESPONSE"


# ============================================================================
# Cache States
# ============================================================================


class CacheState(str, Enum):
    """
    Lifecycle of a manifest key.

    MISS -> FETCHING -> CACHED -> STALE -> REVALIDATING -> CACHED
    Any cached state -> PURGED -> MISS
    """

    MISS = "miss"
    FETCHING = "fetching"
    CACHED = "cached"
    STALE = "stale"
    REVALIDATING = "revalidating"
    PURGED = "purged"


class CacheStatus(str, Enum):
    """Value of the X-Cache response header."""

    HIT = "HIT"
    MISS = "MISS"
    STALE = "STALE"


# ============================================================================
# Manifest Catalogue
# ============================================================================

DEFAULT_MANIFEST_TYPES = ["concert", "events", "journalism", "nature", "portrait", "portfolio"]

# type -> path below the upstream base URL, without the .json suffix
DEFAULT_MANIFEST_PATHS = {
    "concert": "Concert/concert-manifest",
    "events": "Events/events-manifest",
    "journalism": "Journalism/journalism-manifest",
    "nature": "Nature/nature-manifest",
    "portrait": "Portrait/portrait-manifest",
    "featured": "featured-manifest",
    "portfolio": "portfolio-manifest",
    "universal": "portfolio-manifest",
}

# Payload keys that hold the item list, checked in order by the inspector
MANIFEST_ITEM_KEYS = ("bands", "events", "stories", "collections", "items")


# ============================================================================
# Key Layout
# ============================================================================

MANIFEST_KEY_PREFIX = "manifest:"
RATE_LIMIT_KEY_PREFIX = "ratelimit:"


# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-Id"
HEADER_WEBHOOK_SECRET = "X-Webhook-Secret"
HEADER_CACHE = "X-Cache"
HEADER_CACHE_HIT = "X-Cache-Hit"
HEADER_RATE_LIMIT_LIMIT = "X-RateLimit-Limit"
HEADER_RATE_LIMIT_REMAINING = "X-RateLimit-Remaining"
HEADER_RATE_LIMIT_RESET = "X-RateLimit-Reset"

MANIFEST_CONTENT_TYPE = "application/json; charset=utf-8"
STALE_WARNING = '110 - "Response is Stale"'

CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization, X-Webhook-Secret, If-None-Match"
CORS_EXPOSE_HEADERS = (
    "ETag, X-Cache, X-Cache-Hit, X-RateLimit-Limit, X-RateLimit-Remaining, "
    "X-RateLimit-Reset, X-Request-Id"
)
CORS_MAX_AGE_SECONDS = 86400
