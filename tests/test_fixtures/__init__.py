"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .manifest_factory import (
    CONCERT_PAYLOAD,
    EVENTS_PAYLOAD,
    PORTFOLIO_PAYLOAD,
    FakeClock,
    UpstreamStub,
)
from .request_factory import TEST_BASE_URL, TEST_SECRET, build_container, make_request, make_settings
from .store_factory import FlakyBackend

__all__ = [
    "CONCERT_PAYLOAD",
    "EVENTS_PAYLOAD",
    "PORTFOLIO_PAYLOAD",
    "FakeClock",
    "FlakyBackend",
    "TEST_BASE_URL",
    "TEST_SECRET",
    "UpstreamStub",
    "build_container",
    "make_request",
    "make_settings",
]
