"""
Unit Tests for Core Exceptions

Tests status codes, error kinds and the public error body.
"""

import pytest

from manifest_gateway.core.exceptions import (
    CacheConnectionError,
    CacheError,
    ConfigurationError,
    InvalidPayloadError,
    ManifestGatewayError,
    ManifestNotFoundError,
    RateLimitExceededError,
    UnauthorizedError,
    UnknownManifestTypeError,
    UpstreamError,
    UpstreamUnavailableError,
)


@pytest.mark.unit
class TestManifestGatewayError:
    """Test the base gateway exception class."""

    def test_base_error_creation(self):
        """Test that ManifestGatewayError carries its message."""
        error = ManifestGatewayError("Test message")

        assert str(error) == "Test message"
        assert error.details == {}
        assert error.request_id is None

    def test_details_are_copied(self):
        """Test that later changes to the caller's dict do not leak into the error."""
        details = {"type": "concert"}
        error = ManifestGatewayError("Test", details=details)
        details["type"] = "changed"

        assert error.details == {"type": "concert"}

    def test_to_dict_without_details(self):
        """Test the error body omits details when there are none."""
        body = UpstreamError("Upstream returned 503").to_dict()

        assert body["error"] == "upstream_error"
        assert body["message"] == "Upstream returned 503"
        assert body["timestamp"].endswith("Z")
        assert "details" not in body

    def test_to_dict_with_details(self):
        """Test the error body includes details when present."""
        body = ManifestNotFoundError("gone", details={"type": "concert"}).to_dict()

        assert body["details"] == {"type": "concert"}

    def test_from_exception_wraps_original(self):
        """Test wrapping a third-party exception."""
        original = TimeoutError("read timed out")

        error = UpstreamUnavailableError.from_exception(original, url="https://x")

        assert isinstance(error, UpstreamUnavailableError)
        assert error.message == "read timed out"
        assert error.details["original_error"] == "TimeoutError"
        assert error.details["url"] == "https://x"


@pytest.mark.unit
class TestExceptionMapping:
    """Test that every exception declares its HTTP status and error kind."""

    @pytest.mark.parametrize(
        "exc_class, status, code",
        [
            (ConfigurationError, 500, "config_error"),
            (ManifestNotFoundError, 404, "not_found"),
            (UnknownManifestTypeError, 404, "not_found"),
            (UpstreamError, 502, "upstream_error"),
            (UpstreamUnavailableError, 502, "upstream_unavailable"),
            (InvalidPayloadError, 502, "invalid_payload"),
            (UnauthorizedError, 401, "unauthorized"),
            (RateLimitExceededError, 429, "rate_limit_exceeded"),
        ],
    )
    def test_status_and_code(self, exc_class, status, code):
        """Test the status code and error kind of each exception."""
        assert exc_class.status_code == status
        assert exc_class.error_code == code

    def test_hierarchy(self):
        """Test the inheritance relationships the cache policy relies on."""
        assert issubclass(UpstreamUnavailableError, UpstreamError)
        assert issubclass(UnknownManifestTypeError, ManifestNotFoundError)
        assert issubclass(CacheConnectionError, CacheError)
        assert not issubclass(InvalidPayloadError, UpstreamError)


@pytest.mark.unit
class TestRateLimitExceededError:
    """Test RateLimitExceededError."""

    def test_default_message(self):
        """Test the default client-facing message."""
        error = RateLimitExceededError()

        assert error.message == "Too many requests. Please try again later."

    def test_retry_after_in_body(self):
        """Test that retry_after is part of the error body."""
        body = RateLimitExceededError(retry_after=17).to_dict()

        assert body["retry_after"] == 17

    def test_retry_after_is_at_least_one_second(self):
        """Test that retry_after never drops below one second."""
        assert RateLimitExceededError(retry_after=0).retry_after == 1
