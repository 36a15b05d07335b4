"""
Base Exception Class

This module contains the base exception class that all other gateway
exceptions inherit from, plus ConfigurationError. All specialized exceptions
are in their respective themed modules.

Author: System Architect
Date: 2025-12-08
"""

from datetime import datetime, timezone
from typing import Any


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp used in every error body."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ManifestGatewayError(Exception):
    """
    Base exception for all manifest gateway errors.

    Every subclass declares the HTTP status and the machine-readable error
    kind it maps to, so the API layer can render any of them with one
    handler.

    Attributes:
        message: Human-readable error message
        request_id: Request ID for correlation (if available)
        details: Additional error details (dict)

    Example:
        raise UpstreamError(
            "Upstream returned 503",
            details={"type": "concert", "status": 503}
        )
    """

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self, message: str, request_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.request_id = request_id
        self.details = (details or {}).copy()  # Create a copy to prevent external modification
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to the public error body.

        Returns:
            Dict with error, message, timestamp and, when present, details
        """
        body: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
            "timestamp": utc_timestamp(),
        }
        if self.details:
            body["details"] = self.details
        return body

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        request_id_str = f", request_id='{self.request_id}'" if self.request_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{request_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        request_id: str | None = None,
        **details,
    ) -> "ManifestGatewayError":
        """
        Create an instance of this class from another exception.

        Useful for wrapping third-party exceptions (httpx, redis) with
        additional context.

        Example:
            >>> try:
            ...     await client.get(url)
            ... except httpx.TransportError as e:
            ...     raise UpstreamUnavailableError.from_exception(e, url=url)
        """
        error_message = message or str(exc) or exc.__class__.__name__
        all_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details,
        }
        return cls(error_message, request_id=request_id, details=all_details)


class ConfigurationError(ManifestGatewayError):
    """
    Raised when the gateway is missing configuration it needs to serve a request.

    Example: fetching a manifest while MANIFEST_BASE_URL is unset.
    """

    status_code = 500
    error_code = "config_error"
