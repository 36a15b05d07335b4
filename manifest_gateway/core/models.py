"""
Domain Models

ManifestRecord is what the upstream fetcher produces; CacheEntry is the
serialized form both cache tiers store; CachedManifest is what the cache
policy hands to the HTTP layer.

Author: System Architect
Date: 2025-12-08
"""

from dataclasses import dataclass, field
from typing import Any

import orjson

from manifest_gateway.core.config.constants import MANIFEST_ITEM_KEYS, CacheState, CacheStatus


@dataclass(frozen=True)
class ManifestRecord:
    """
    One manifest document as fetched from upstream.

    Attributes:
        type: Manifest type (identity)
        payload: Parsed JSON document (object or array)
        fetched_at: Epoch seconds of the successful fetch
        etag: Validator (upstream-provided or computed)
        source_url: Canonical upstream URL
        body: Serialized payload served to clients
    """

    type: str
    payload: Any
    fetched_at: float
    etag: str
    source_url: str
    body: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        if not self.body:
            object.__setattr__(self, "body", orjson.dumps(self.payload))

    @property
    def item_count(self) -> int | None:
        """Number of items in the manifest's main list, if it has one."""
        if isinstance(self.payload, list):
            return len(self.payload)
        if isinstance(self.payload, dict):
            for key in MANIFEST_ITEM_KEYS:
                items = self.payload.get(key)
                if isinstance(items, list):
                    return len(items)
        return None


@dataclass(frozen=True)
class CacheEntry:
    """
    A manifest as stored in a cache tier.

    Invariant: expires_at <= stale_until. Between the two the entry may be
    served only when a refetch fails.
    """

    key: str
    value: bytes
    expires_at: float
    stale_until: float
    etag: str
    fetched_at: float
    source_url: str
    manifest_type: str

    def __post_init__(self):
        if self.expires_at > self.stale_until:
            raise ValueError(
                f"expires_at ({self.expires_at}) must not be after stale_until ({self.stale_until})"
            )

    @classmethod
    def from_record(
        cls, key: str, record: ManifestRecord, ttl_seconds: int, stale_seconds: int, now: float
    ) -> "CacheEntry":
        expires_at = now + ttl_seconds
        return cls(
            key=key,
            value=record.body,
            expires_at=expires_at,
            stale_until=expires_at + stale_seconds,
            etag=record.etag,
            fetched_at=record.fetched_at,
            source_url=record.source_url,
            manifest_type=record.type,
        )

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at

    def is_servable(self, now: float) -> bool:
        return now < self.stale_until

    def state(self, now: float) -> CacheState:
        return CacheState.CACHED if self.is_fresh(now) else CacheState.STALE

    def store_ttl(self, now: float) -> int:
        """Seconds the backing store should keep this entry."""
        return max(1, int(self.stale_until - now + 0.999))

    def to_record(self) -> ManifestRecord:
        return ManifestRecord(
            type=self.manifest_type,
            payload=orjson.loads(self.value),
            fetched_at=self.fetched_at,
            etag=self.etag,
            source_url=self.source_url,
            body=self.value,
        )

    def serialize(self) -> bytes:
        return orjson.dumps(
            {
                "key": self.key,
                "value": self.value.decode("utf-8"),
                "expires_at": self.expires_at,
                "stale_until": self.stale_until,
                "etag": self.etag,
                "fetched_at": self.fetched_at,
                "source_url": self.source_url,
                "type": self.manifest_type,
            }
        )

    @classmethod
    def deserialize(cls, raw: bytes) -> "CacheEntry":
        """
        Raises:
            ValueError: If the stored blob is not a valid entry
        """
        try:
            data = orjson.loads(raw)
            return cls(
                key=data["key"],
                value=data["value"].encode("utf-8"),
                expires_at=float(data["expires_at"]),
                stale_until=float(data["stale_until"]),
                etag=data["etag"],
                fetched_at=float(data["fetched_at"]),
                source_url=data["source_url"],
                manifest_type=data["type"],
            )
        except (orjson.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed cache entry: {e}") from e


@dataclass(frozen=True)
class CachedManifest:
    """Result of a manifest lookup."""

    record: ManifestRecord
    cache_status: CacheStatus
    state: CacheState

    @property
    def is_hit(self) -> bool:
        return self.cache_status is not CacheStatus.MISS
