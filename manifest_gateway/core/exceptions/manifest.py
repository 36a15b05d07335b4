"""
Manifest and Upstream Exceptions

Errors raised while resolving a manifest type or fetching it from the
upstream origin.

Author: System Architect
Date: 2025-12-08
"""

from manifest_gateway.core.exceptions.base import ManifestGatewayError


class ManifestNotFoundError(ManifestGatewayError):
    """Raised when the upstream origin reports the manifest does not exist (404)."""

    status_code = 404
    error_code = "not_found"


class UnknownManifestTypeError(ManifestNotFoundError):
    """Raised when a request names a type that is not in the catalogue."""

    pass


class UpstreamError(ManifestGatewayError):
    """
    Raised when the upstream origin answers with a non-success status.

    details["status"] carries the upstream status code.
    """

    status_code = 502
    error_code = "upstream_error"


class UpstreamUnavailableError(UpstreamError):
    """
    Raised on network failure or timeout talking to the upstream origin.

    Retryable by the caller; the gateway itself never retries automatically.
    """

    error_code = "upstream_unavailable"


class InvalidPayloadError(ManifestGatewayError):
    """Raised when the upstream body is not a JSON object or array. Never cached."""

    status_code = 502
    error_code = "invalid_payload"
