"""
Manifest Routes
===============

Public read endpoints, rate limited by RateLimitMiddleware.

GET /manifests          catalogue of configured types
GET /manifests/{type}   manifest document through the cache tiers

Response headers on a manifest:
    ETag           validator (upstream or computed weak fingerprint)
    Cache-Control  public, max-age=<ttl>, stale-while-revalidate=<swr>
    X-Cache        HIT | MISS | STALE
    X-Cache-Hit    true | false
    Warning        only on STALE
"""

from fastapi import APIRouter, Header, Response

from manifest_gateway.application.api.dependencies import ManifestServiceDep, SettingsDep
from manifest_gateway.application.api.models import ManifestCatalogueResponse, ManifestLink
from manifest_gateway.core.config.constants import (
    HEADER_CACHE,
    HEADER_CACHE_HIT,
    MANIFEST_CONTENT_TYPE,
    STALE_WARNING,
    CacheStatus,
)
from manifest_gateway.infrastructure.cache.etag import if_none_match_matches

router = APIRouter(prefix="/manifests", tags=["Manifests"])


@router.get("", response_model=ManifestCatalogueResponse)
async def list_manifests(service: ManifestServiceDep, settings: SettingsDep):
    base = settings.API_BASE_PATH
    types = list(service.registry.types)
    return ManifestCatalogueResponse(
        types=types,
        total=len(types),
        manifests=[ManifestLink(type=name, endpoint=f"{base}/manifests/{name}") for name in types],
    )


@router.get(
    "/{manifest_type}",
    response_class=Response,
    responses={
        200: {"content": {"application/json": {}}, "description": "Manifest document"},
        304: {"description": "Client copy is current"},
        404: {"description": "Unknown type or not found upstream"},
        502: {"description": "Upstream failed and nothing is cached"},
    },
)
async def get_manifest(
    manifest_type: str,
    service: ManifestServiceDep,
    if_none_match: str | None = Header(default=None),
):
    """
    Serve a manifest.

    A matching If-None-Match yields a bodyless 304 carrying the current ETag.
    """
    result = await service.get_manifest(manifest_type)
    record = result.record

    headers = {
        "ETag": record.etag,
        "Cache-Control": service.cache_control,
        HEADER_CACHE: result.cache_status.value,
        HEADER_CACHE_HIT: "true" if result.is_hit else "false",
    }
    if result.cache_status is CacheStatus.STALE:
        headers["Warning"] = STALE_WARNING

    if if_none_match_matches(if_none_match, record.etag):
        return Response(status_code=304, headers=headers)

    return Response(content=record.body, status_code=200, headers=headers, media_type=MANIFEST_CONTENT_TYPE)
