"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from billing_cache.core.config.settings import Settings  # noqa: E402
from billing_cache.infrastructure.cache.cache_aside import CacheAsideAdapter  # noqa: E402
from billing_cache.infrastructure.cache.version_registry import VersionRegistry  # noqa: E402
from tests.test_fixtures.cache_factory import CacheTestFactory, FakeClock  # noqa: E402
from tests.test_fixtures.durable_store import InMemoryDurableStore  # noqa: E402


# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode (see pyproject.toml), so async fixtures
# and tests need no extra decorator.


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """
    Settings for testing.

    Built explicitly so a developer's .env or environment cannot change the
    outcome of a test.
    """
    return Settings(
        _env_file=None,
        REDIS_HOST="localhost",
        REDIS_PORT=6379,
        REDIS_CONNECT_RETRIES=1,
        CACHE_KEY_PREFIX="test",
        CACHE_VERSION="v1",
        CACHE_VERSION_LIMIT=2,
        CACHE_DEFAULT_TTL=0,
        CACHE_OPERATION_TIMEOUT=0.5,
        CACHE_FLUSH_BATCH_SIZE=10,
        CACHE_INVALIDATION_FAILURE_POLICY="raise",
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
        ENVIRONMENT="development",
    )


# ============================================================================
# Environment-Based Integration Toggles
# ============================================================================


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if real Redis should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    """In-memory KeyValueStore with a manually advanced clock."""
    return CacheTestFactory.memory_store(key_prefix="test", clock=clock)


@pytest.fixture
def flaky_store():
    """In-memory KeyValueStore whose operations can be made to fail."""
    return CacheTestFactory.flaky_store()


@pytest.fixture
def registry(memory_store):
    return VersionRegistry(memory_store, version_limit=2)


@pytest.fixture
async def namespace(registry):
    return await registry.register("v1")


@pytest.fixture
def adapter(namespace):
    return CacheAsideAdapter(namespace)


@pytest.fixture
async def flaky_adapter(flaky_store):
    """Adapter over a flaky store; set ``flaky_store.failing[...]`` to break it."""
    registry = VersionRegistry(flaky_store, version_limit=2)
    namespace = await registry.register("v1")
    return CacheAsideAdapter(namespace)


# ============================================================================
# Durable Store Fixtures
# ============================================================================


@pytest.fixture
def price_group_store():
    return InMemoryDurableStore(name="price_group")


@pytest.fixture
def cost_store():
    return InMemoryDurableStore(name="money_back_cost_merchant")
