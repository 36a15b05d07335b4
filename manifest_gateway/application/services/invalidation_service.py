"""
Invalidation Service
====================

Webhook-driven cache maintenance: purge, warm and refresh, for one manifest
type or for the whole catalogue.

All operations are idempotent. Purging an absent entry succeeds with
``deleted: False``; warming twice simply replaces the entry twice.
"Everything" operations run per type concurrently with asyncio.gather and
report per-type outcomes instead of failing as a whole.
"""

import asyncio
from typing import Any

from manifest_gateway.application.services.manifest_service import ManifestService
from manifest_gateway.core.config.constants import Stage
from manifest_gateway.core.exceptions import ManifestGatewayError, UnknownManifestTypeError
from manifest_gateway.core.logging import get_logger, log_stage
from manifest_gateway.infrastructure.monitoring.metrics_collector import CacheMetrics

logger = get_logger(__name__)


class InvalidationService:
    """
    Usage:
        service = InvalidationService(manifest_service, metrics)
        await service.purge("concert")
        await service.warm_all()
    """

    def __init__(self, manifests: ManifestService, metrics: CacheMetrics):
        self._manifests = manifests
        self._metrics = metrics

    @property
    def types(self) -> tuple[str, ...]:
        return self._manifests.registry.types

    async def purge(self, manifest_type: str) -> dict[str, Any]:
        """
        Remove one manifest from both cache tiers.

        Raises:
            UnknownManifestTypeError: Type not in the catalogue
        """
        result = await self._manifests.evict(manifest_type)
        self._metrics.increment("purges")
        log_stage(
            logger, Stage.INVALIDATION, "Manifest purged",
            type=result["type"], deleted=result["deleted"],
        )
        return result

    async def purge_all(self) -> dict[str, Any]:
        results = await asyncio.gather(*(self.purge(name) for name in self.types))
        return {
            "purged": sum(1 for result in results if result["deleted"]),
            "total": len(results),
            "results": list(results),
        }

    async def warm(self, manifest_type: str) -> dict[str, Any]:
        """
        Fetch one manifest and store it in both tiers regardless of state.

        Raises:
            UnknownManifestTypeError: Type not in the catalogue
            ManifestGatewayError: The fetch failed (upstream, payload or configuration)
        """
        record = await self._manifests.fetch_and_store(manifest_type)
        self._metrics.increment("warms")
        log_stage(
            logger, Stage.INVALIDATION, "Manifest warmed",
            type=record.type, etag=record.etag,
        )
        return {
            "type": record.type,
            "cached": True,
            "etag": record.etag,
            "item_count": record.item_count,
            "size_bytes": len(record.body),
        }

    async def _warm_one(self, name: str) -> dict[str, Any]:
        try:
            return await self.warm(name)
        except UnknownManifestTypeError:
            raise
        except ManifestGatewayError as e:
            log_stage(
                logger, Stage.INVALIDATION, "Warm failed",
                level="warning", type=name, error=e.error_code, detail=e.message,
            )
            return {"type": name, "cached": False, "error": e.error_code, "message": e.message}

    async def warm_all(self) -> dict[str, Any]:
        results = await asyncio.gather(*(self._warm_one(name) for name in self.types))
        warmed = sum(1 for result in results if result["cached"])
        return {
            "warmed": warmed,
            "cached": warmed,
            "failed": len(results) - warmed,
            "total": len(results),
            "results": list(results),
        }

    async def refresh(self, manifest_type: str) -> dict[str, Any]:
        """Purge then warm one manifest."""
        purged = await self.purge(manifest_type)
        warmed = await self.warm(manifest_type)
        return {"type": warmed["type"], "purged": purged["deleted"], **warmed}

    async def refresh_all(self) -> dict[str, Any]:
        purged = await self.purge_all()
        warmed = await self.warm_all()
        return {"purged": purged["purged"], **warmed}
