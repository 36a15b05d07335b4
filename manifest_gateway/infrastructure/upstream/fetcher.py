#!/usr/bin/env python3
"""
Upstream Manifest Fetcher

Retrieves a manifest document from the upstream origin. A pure read with
no side effects on the cache tiers; the cache policy decides what to store.

Error mapping:
    upstream 404               -> ManifestNotFoundError (not retried)
    timeout / network failure  -> UpstreamUnavailableError (retryable by caller)
    other non-2xx              -> UpstreamError (details["status"])
    body not a JSON document   -> InvalidPayloadError (never cached)
    no base URL configured     -> ConfigurationError

Author: System Architect
Date: 2025-12-13
"""

import time
from collections.abc import Callable

import httpx
import orjson

from manifest_gateway.core.config.constants import Stage
from manifest_gateway.core.config.manifests import ManifestRegistry
from manifest_gateway.core.exceptions import (
    InvalidPayloadError,
    ManifestNotFoundError,
    UpstreamError,
    UpstreamUnavailableError,
)
from manifest_gateway.core.logging.logger import get_logger, log_stage
from manifest_gateway.core.models import ManifestRecord
from manifest_gateway.infrastructure.cache.etag import choose_etag

logger = get_logger(__name__)


class UpstreamFetcher:
    """
    Fetches manifests over HTTP with a single shared httpx.AsyncClient.

    Usage:
        fetcher = UpstreamFetcher(registry, timeout_seconds=10)
        record = await fetcher.fetch("concert")
        await fetcher.close()
    """

    def __init__(
        self,
        registry: ManifestRegistry,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self._registry = registry
        self._timeout = timeout_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )
        self._clock = clock or time.time

    @property
    def registry(self) -> ManifestRegistry:
        return self._registry

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, manifest_type: str) -> ManifestRecord:
        """
        Fetch one manifest.

        STAGE-4.0: Upstream fetch

        Raises:
            ConfigurationError, ManifestNotFoundError, UpstreamUnavailableError,
            UpstreamError, InvalidPayloadError
        """
        url = self._registry.source_url(manifest_type)
        started = time.perf_counter()

        try:
            response = await self._client.get(url, timeout=self._timeout)
        except httpx.TimeoutException as e:
            log_stage(
                logger, Stage.UPSTREAM_FETCH, "Upstream fetch timed out",
                level="warning", type=manifest_type, url=url, timeout_s=self._timeout,
            )
            raise UpstreamUnavailableError.from_exception(
                e, message=f"Upstream timed out after {self._timeout}s", type=manifest_type, url=url
            ) from e
        except httpx.HTTPError as e:
            log_stage(
                logger, Stage.UPSTREAM_FETCH, "Upstream fetch failed",
                level="warning", type=manifest_type, url=url, error=str(e),
            )
            raise UpstreamUnavailableError.from_exception(
                e, message="Failed to reach upstream", type=manifest_type, url=url
            ) from e

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        if response.status_code == 404:
            raise ManifestNotFoundError(
                f"Manifest not found: {manifest_type}",
                details={"type": manifest_type, "url": url},
            )

        if not response.is_success:
            log_stage(
                logger, Stage.UPSTREAM_FETCH, "Upstream returned error status",
                level="warning", type=manifest_type, status=response.status_code, url=url,
            )
            raise UpstreamError(
                f"Upstream returned {response.status_code}",
                details={"type": manifest_type, "status": response.status_code, "url": url},
            )

        try:
            payload = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise InvalidPayloadError(
                "Upstream returned invalid JSON",
                details={"type": manifest_type, "url": url, "error": str(e)},
            ) from e

        if not isinstance(payload, (dict, list)):
            raise InvalidPayloadError(
                "Upstream manifest is not a JSON object or array",
                details={"type": manifest_type, "url": url},
            )

        etag = choose_etag(manifest_type, payload, response.headers.get("etag"))
        log_stage(
            logger, Stage.UPSTREAM_FETCH, "Upstream fetch succeeded",
            type=manifest_type, status=response.status_code, duration_ms=elapsed_ms,
        )
        return ManifestRecord(
            type=manifest_type,
            payload=payload,
            fetched_at=self._clock(),
            etag=etag,
            source_url=url,
        )
