"""
Test Fixtures Package

Fake stores, clocks and Redis mocks shared by the unit and integration tests.
"""

from .cache_factory import CacheTestFactory, FakeClock, FlakyStore
from .durable_store import InMemoryDurableStore

__all__ = ["CacheTestFactory", "FakeClock", "FlakyStore", "InMemoryDurableStore"]
