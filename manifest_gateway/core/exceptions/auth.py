"""
Authentication Exceptions

Author: System Architect
Date: 2025-12-08
"""

from manifest_gateway.core.exceptions.base import ManifestGatewayError


class UnauthorizedError(ManifestGatewayError):
    """Raised when a webhook request does not present the shared secret."""

    status_code = 401
    error_code = "unauthorized"
