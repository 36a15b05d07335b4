"""
Rate Limiting Exceptions

Author: System Architect
Date: 2025-12-08
"""

from typing import Any

from manifest_gateway.core.exceptions.base import ManifestGatewayError


class RateLimitExceededError(ManifestGatewayError):
    """
    Raised when a client exceeds its request window.

    Attributes:
        retry_after: Seconds until the client's window resets
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        message: str = "Too many requests. Please try again later.",
        retry_after: int = 60,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, request_id=request_id, details=details)
        self.retry_after = max(1, int(retry_after))

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["retry_after"] = self.retry_after
        return body
