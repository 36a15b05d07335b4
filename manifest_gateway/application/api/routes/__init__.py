from .cache import router as cache_router
from .health import router as health_router
from .manifests import router as manifests_router
from .metrics import router as metrics_router
from .webhooks import router as webhooks_router

__all__ = [
    "cache_router",
    "health_router",
    "manifests_router",
    "metrics_router",
    "webhooks_router",
]
