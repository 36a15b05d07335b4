"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from contextlib import ExitStack

import pytest
from fastapi.testclient import TestClient

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from manifest_gateway.application.app import create_app  # noqa: E402
from manifest_gateway.core.config.manifests import ManifestRegistry  # noqa: E402
from manifest_gateway.infrastructure.cache.memory_backend import MemoryBackend  # noqa: E402
from manifest_gateway.infrastructure.cache.store import KeyValueStore  # noqa: E402
from manifest_gateway.infrastructure.monitoring.metrics_collector import CacheMetrics  # noqa: E402
from tests.test_fixtures import (  # noqa: E402
    TEST_BASE_URL,
    FakeClock,
    FlakyBackend,
    UpstreamStub,
    build_container,
    make_settings,
)

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode (see pyproject.toml); async fixtures and
# tests need no explicit event loop fixture.


# ============================================================================
# Environment-Based Integration Toggles
# ============================================================================


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if a real Redis server should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


@pytest.fixture(scope="session")
def redis_url():
    return os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")


# ============================================================================
# Time and Upstream Fixtures
# ============================================================================


@pytest.fixture
def clock():
    """Controllable clock shared by every TTL and window computation."""
    return FakeClock()


@pytest.fixture
def upstream():
    """
    Scripted manifest origin.

    Serves the sample concert, events and portfolio payloads; tests switch
    it to failures by setting ``fail_with`` or ``status_for``.
    """
    return UpstreamStub()


@pytest.fixture
def registry():
    return ManifestRegistry(
        types=["concert", "events", "portfolio", "universal"],
        base_url=TEST_BASE_URL,
    )


# ============================================================================
# Component Fixtures
# ============================================================================


@pytest.fixture
def memory_backend(clock):
    return MemoryBackend(max_size=100, clock=clock)


@pytest.fixture
def flaky_backend(clock):
    """Redis stand-in that can be switched to failing mid-test."""
    return FlakyBackend(clock=clock)


@pytest.fixture
def kv_store(clock):
    return KeyValueStore(primary=None, fallback=MemoryBackend(max_size=100, clock=clock))


@pytest.fixture
def metrics(clock):
    """Fresh metrics with their own Prometheus registry."""
    return CacheMetrics(clock=clock)


@pytest.fixture
def settings():
    return make_settings(MANIFEST_TYPES="concert,events,portfolio,universal")


@pytest.fixture
def container(settings, clock, upstream):
    """Complete component graph without Redis."""
    return build_container(settings, clock, upstream)


# ============================================================================
# HTTP Fixtures
# ============================================================================


@pytest.fixture
def client_factory(clock, upstream):
    """
    Build TestClients for custom settings.

    The lifespan runs (startup and shutdown) because each client is entered
    as a context manager. The component graph is reachable through
    ``client.app.state.container``.

    Usage:
        client = client_factory(RATE_LIMIT_REQUESTS=3)
        client = client_factory(redis_backend=FlakyBackend(failing=True))
    """
    stack = ExitStack()

    def factory(redis_backend=None, **overrides) -> TestClient:
        overrides.setdefault("MANIFEST_TYPES", "concert,events,portfolio,universal")
        container = build_container(make_settings(**overrides), clock, upstream, redis_backend)
        app = create_app(container=container)
        return stack.enter_context(TestClient(app))

    yield factory
    stack.close()


@pytest.fixture
def client(client_factory):
    """TestClient with default test settings."""
    return client_factory()
