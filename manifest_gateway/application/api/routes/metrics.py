"""
Prometheus Metrics Route

GET /metrics   text exposition of the gateway's CollectorRegistry
"""

from fastapi import APIRouter, Response

from manifest_gateway.application.api.dependencies import MetricsDep

router = APIRouter(tags=["Monitoring"])


@router.get("/metrics", response_class=Response)
async def prometheus_metrics(metrics: MetricsDep):
    return Response(content=metrics.render_prometheus(), media_type=metrics.content_type())
