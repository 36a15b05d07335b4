"""
Unit Tests for UpstreamFetcher

Tests success handling and the mapping of upstream failures onto gateway
exceptions, using httpx.MockTransport.
"""

import httpx
import pytest

from manifest_gateway.core.config.manifests import ManifestRegistry
from manifest_gateway.core.exceptions import (
    ConfigurationError,
    InvalidPayloadError,
    ManifestNotFoundError,
    UpstreamError,
    UpstreamUnavailableError,
)
from manifest_gateway.infrastructure.cache.etag import compute_etag
from manifest_gateway.infrastructure.upstream.fetcher import UpstreamFetcher
from tests.test_fixtures import CONCERT_PAYLOAD, TEST_BASE_URL


@pytest.fixture
def fetcher(registry, upstream, clock):
    return UpstreamFetcher(registry, timeout_seconds=5, client=upstream.client(), clock=clock)


@pytest.mark.unit
class TestFetchSuccess:
    """Successful fetches."""

    @pytest.mark.asyncio
    async def test_fetch_returns_record(self, fetcher, upstream, clock):
        """Test that a fetch yields the parsed document and its metadata."""
        record = await fetcher.fetch("concert")

        assert record.type == "concert"
        assert record.payload == CONCERT_PAYLOAD
        assert record.fetched_at == clock()
        assert record.source_url == f"{TEST_BASE_URL}/Concert/concert-manifest.json"
        assert upstream.calls == [record.source_url]

    @pytest.mark.asyncio
    async def test_computed_etag_without_upstream_validator(self, fetcher):
        """Test the weak fingerprint when upstream sends no ETag."""
        record = await fetcher.fetch("concert")

        assert record.etag == compute_etag("concert", CONCERT_PAYLOAD)

    @pytest.mark.asyncio
    async def test_upstream_etag_preferred(self, fetcher, upstream):
        """Test that the upstream validator is passed through."""
        upstream.etag = '"upstream-v7"'

        record = await fetcher.fetch("concert")

        assert record.etag == '"upstream-v7"'

    @pytest.mark.asyncio
    async def test_array_document_accepted(self, fetcher, upstream):
        """Test that a top-level JSON array is a valid manifest."""
        upstream.raw_body = b'[{"slug": "a"}]'

        record = await fetcher.fetch("concert")

        assert record.item_count == 1


@pytest.mark.unit
class TestFetchFailures:
    """Upstream failures and their exception mapping."""

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, fetcher, upstream):
        """Test that a missing upstream document raises ManifestNotFoundError."""
        upstream.status_for["Concert/"] = 404

        with pytest.raises(ManifestNotFoundError):
            await fetcher.fetch("concert")

    @pytest.mark.asyncio
    async def test_server_error_is_upstream_error(self, fetcher, upstream):
        """Test that other error statuses raise UpstreamError with the status."""
        upstream.status_for["Concert/"] = 503

        with pytest.raises(UpstreamError) as exc_info:
            await fetcher.fetch("concert")

        assert exc_info.value.details["status"] == 503
        assert not isinstance(exc_info.value, UpstreamUnavailableError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "failure",
        [httpx.ConnectError("connection refused"), httpx.ReadTimeout("timed out")],
    )
    async def test_network_failures_are_unavailable(self, fetcher, upstream, failure):
        """Test that timeouts and connection errors raise UpstreamUnavailableError."""
        upstream.fail_with = failure

        with pytest.raises(UpstreamUnavailableError):
            await fetcher.fetch("concert")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"<html>oops</html>", b"42", b'"just a string"'])
    async def test_invalid_documents_rejected(self, fetcher, upstream, body):
        """Test that non-JSON and scalar JSON bodies raise InvalidPayloadError."""
        upstream.raw_body = body

        with pytest.raises(InvalidPayloadError):
            await fetcher.fetch("concert")

    @pytest.mark.asyncio
    async def test_missing_base_url(self, upstream):
        """Test that no request is made without a base URL."""
        fetcher = UpstreamFetcher(ManifestRegistry(["concert"], None), client=upstream.client())

        with pytest.raises(ConfigurationError):
            await fetcher.fetch("concert")

        assert upstream.calls == []


@pytest.mark.unit
class TestFetcherLifecycle:
    """Client ownership."""

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self, registry, upstream):
        """Test that close() leaves a caller-provided client open."""
        client = upstream.client()
        fetcher = UpstreamFetcher(registry, client=client)

        await fetcher.close()

        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self, registry):
        """Test that close() closes the client the fetcher created."""
        fetcher = UpstreamFetcher(registry)

        await fetcher.close()

        assert fetcher._client.is_closed is True
