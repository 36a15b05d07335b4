"""
Webhook Routes
==============

Cache maintenance triggered by the content pipeline after it publishes new
manifests. Every route requires the pre-shared secret (verify_webhook_secret)
and none of them is rate limited.

POST /webhooks/purge[/{type}]     delete from both tiers
POST /webhooks/warm[/{type}]      fetch and store now
POST /webhooks/refresh[/{type}]   purge, then warm

Unknown types answer 404. A single-type warm or refresh whose fetch fails
answers with the fetch error's status (502 for upstream problems).
"""

from fastapi import APIRouter, Depends

from manifest_gateway.application.api.dependencies import (
    InvalidationServiceDep,
    verify_webhook_secret,
)
from manifest_gateway.application.api.models import WebhookResponse
from manifest_gateway.core.exceptions import utc_timestamp

router = APIRouter(
    prefix="/webhooks",
    tags=["Webhooks"],
    dependencies=[Depends(verify_webhook_secret)],
)

_ROUTE_OPTIONS = {"response_model": WebhookResponse, "response_model_exclude_none": True}


def _respond(action: str, result: dict, success: bool = True) -> dict:
    return {"success": success, "action": action, "timestamp": utc_timestamp(), **result}


@router.post("/purge", **_ROUTE_OPTIONS)
async def purge_all(service: InvalidationServiceDep):
    result = await service.purge_all()
    return _respond("purge-all", result)


@router.post("/purge/{manifest_type}", **_ROUTE_OPTIONS)
async def purge(manifest_type: str, service: InvalidationServiceDep):
    result = await service.purge(manifest_type)
    return _respond("purge", {"type": result["type"], "deleted": result["deleted"]})


@router.post("/warm", **_ROUTE_OPTIONS)
async def warm_all(service: InvalidationServiceDep):
    """Warm every type. Partial failure still answers 200 with per-type results."""
    result = await service.warm_all()
    return _respond("warm-all", result, success=result["failed"] == 0)


@router.post("/warm/{manifest_type}", **_ROUTE_OPTIONS)
async def warm(manifest_type: str, service: InvalidationServiceDep):
    result = await service.warm(manifest_type)
    return _respond("warm", result)


@router.post("/refresh", **_ROUTE_OPTIONS)
async def refresh_all(service: InvalidationServiceDep):
    result = await service.refresh_all()
    return _respond("refresh-all", result, success=result["failed"] == 0)


@router.post("/refresh/{manifest_type}", **_ROUTE_OPTIONS)
async def refresh(manifest_type: str, service: InvalidationServiceDep):
    result = await service.refresh(manifest_type)
    return _respond("refresh", result)
