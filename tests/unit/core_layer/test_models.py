"""
Unit Tests for Domain Models

Tests ManifestRecord, CacheEntry deadlines and serialization.
"""

import orjson
import pytest

from manifest_gateway.core.config.constants import CacheState, CacheStatus
from manifest_gateway.core.models import CachedManifest, CacheEntry, ManifestRecord
from tests.test_fixtures import CONCERT_PAYLOAD

NOW = 1_000_000.0


def _record(payload=CONCERT_PAYLOAD, manifest_type="concert") -> ManifestRecord:
    return ManifestRecord(
        type=manifest_type,
        payload=payload,
        fetched_at=NOW,
        etag='W/"concert-abc"',
        source_url="https://cdn.example.test/Concert/concert-manifest.json",
    )


@pytest.mark.unit
class TestManifestRecord:
    """Test suite for ManifestRecord."""

    def test_body_serialized_from_payload(self):
        """Test that the served body is derived from the payload."""
        record = _record()

        assert orjson.loads(record.body) == CONCERT_PAYLOAD

    def test_explicit_body_kept(self):
        """Test that a given body is not re-serialized."""
        record = ManifestRecord("concert", {"a": 1}, NOW, "e", "u", body=b'{"a": 1}')

        assert record.body == b'{"a": 1}'

    @pytest.mark.parametrize(
        "payload, expected",
        [
            (CONCERT_PAYLOAD, 2),
            ({"stories": [1, 2, 3]}, 3),
            ([1, 2, 3, 4], 4),
            ({"title": "no list here"}, None),
        ],
    )
    def test_item_count(self, payload, expected):
        """Test that item_count finds the manifest's main list."""
        assert _record(payload).item_count == expected


@pytest.mark.unit
class TestCacheEntry:
    """Test suite for CacheEntry."""

    @pytest.fixture
    def entry(self):
        return CacheEntry.from_record("manifest:concert", _record(), 600, 3600, NOW)

    def test_deadlines_from_record(self, entry):
        """Test that expiry and stale deadlines follow the configured windows."""
        assert entry.expires_at == NOW + 600
        assert entry.stale_until == NOW + 600 + 3600
        assert entry.manifest_type == "concert"

    def test_expiry_after_stale_deadline_rejected(self):
        """Test the expires_at <= stale_until invariant."""
        with pytest.raises(ValueError):
            CacheEntry("k", b"{}", expires_at=10, stale_until=5, etag="e",
                       fetched_at=0, source_url="u", manifest_type="t")

    def test_zero_stale_window_allowed(self):
        """Test that an entry may expire and become unservable at the same instant."""
        entry = CacheEntry.from_record("k", _record(), 600, 0, NOW)

        assert entry.expires_at == entry.stale_until

    def test_freshness_transitions(self, entry):
        """Test fresh, stale and unservable phases."""
        assert entry.is_fresh(NOW + 599)
        assert entry.state(NOW + 599) is CacheState.CACHED

        assert not entry.is_fresh(NOW + 600)
        assert entry.is_servable(NOW + 600)
        assert entry.state(NOW + 600) is CacheState.STALE

        assert not entry.is_servable(NOW + 4200)

    def test_store_ttl_covers_stale_window(self, entry):
        """Test that the backing store keeps the entry until stale_until."""
        assert entry.store_ttl(NOW) == 4200
        assert entry.store_ttl(NOW + 4199.5) == 1
        assert entry.store_ttl(NOW + 5000) == 1

    def test_serialize_round_trip(self, entry):
        """Test that a stored entry deserializes to an equal entry."""
        assert CacheEntry.deserialize(entry.serialize()) == entry

    @pytest.mark.parametrize("raw", [b"not json", b"{}", b'{"key": "k"}', b"[1, 2]"])
    def test_deserialize_rejects_malformed(self, raw):
        """Test that malformed blobs raise ValueError."""
        with pytest.raises(ValueError):
            CacheEntry.deserialize(raw)

    def test_to_record_restores_payload(self, entry):
        """Test converting a stored entry back into a record."""
        record = entry.to_record()

        assert record.payload == CONCERT_PAYLOAD
        assert record.etag == entry.etag
        assert record.body == entry.value


@pytest.mark.unit
class TestCachedManifest:
    """Test suite for CachedManifest."""

    @pytest.mark.parametrize(
        "status, is_hit",
        [(CacheStatus.HIT, True), (CacheStatus.STALE, True), (CacheStatus.MISS, False)],
    )
    def test_is_hit(self, status, is_hit):
        """Test that everything except a MISS counts as served from cache."""
        result = CachedManifest(record=_record(), cache_status=status, state=CacheState.CACHED)

        assert result.is_hit is is_hit
