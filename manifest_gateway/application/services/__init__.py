"""
Application Services Package
=============================

Business logic used by the API routes:

- ManifestService: cache policy for reads (edge -> key-value -> upstream)
- InvalidationService: purge / warm / refresh driven by webhooks

Routes handle HTTP; services handle caching decisions and can be tested
without an HTTP client.
"""

from manifest_gateway.application.services.invalidation_service import InvalidationService
from manifest_gateway.application.services.manifest_service import ManifestService

__all__ = ["InvalidationService", "ManifestService"]
