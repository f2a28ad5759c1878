"""
Cache Test Factory

Creates key-value stores and Redis client mocks with various failure
behaviours for testing.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from billing_cache.core.exceptions import CacheBackendError
from billing_cache.core.interfaces.cache import KeyValueStore
from billing_cache.infrastructure.cache.memory_store import InMemoryKeyValueStore


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FlakyStore(InMemoryKeyValueStore):
    """
    In-memory store whose operations can be made to fail.

    ``failing`` maps an operation name ("get", "set", "delete",
    "flush_namespace") to the exception it raises until cleared.
    """

    def __init__(self, key_prefix: str = "test"):
        super().__init__(key_prefix=key_prefix)
        self.failing: dict[str, Exception] = {}
        self.calls: dict[str, int] = {}

    def _check(self, operation: str) -> None:
        self.calls[operation] = self.calls.get(operation, 0) + 1
        error = self.failing.get(operation)
        if error is not None:
            raise error

    async def get(self, key, *, timeout=None):
        self._check("get")
        return await super().get(key, timeout=timeout)

    async def set(self, key, value, ttl=None, *, timeout=None):
        self._check("set")
        await super().set(key, value, ttl, timeout=timeout)

    async def delete(self, *keys, timeout=None):
        self._check("delete")
        return await super().delete(*keys, timeout=timeout)

    async def flush_namespace(self, name, *, timeout=None):
        self._check("flush_namespace")
        return await super().flush_namespace(name, timeout=timeout)


class CacheTestFactory:
    """Factory for creating cache test objects."""

    @staticmethod
    def memory_store(key_prefix: str = "test", clock: FakeClock | None = None) -> InMemoryKeyValueStore:
        if clock is None:
            return InMemoryKeyValueStore(key_prefix=key_prefix)
        return InMemoryKeyValueStore(key_prefix=key_prefix, clock=clock)

    @staticmethod
    def flaky_store(key_prefix: str = "test") -> FlakyStore:
        return FlakyStore(key_prefix=key_prefix)

    @staticmethod
    def failing_store(error: Exception | None = None) -> MagicMock:
        """Create a store whose every operation fails."""
        if error is None:
            error = CacheBackendError("Redis connection failed")

        store = MagicMock(spec=KeyValueStore)
        store.key_prefix = "test"
        store.get = AsyncMock(side_effect=error)
        store.set = AsyncMock(side_effect=error)
        store.delete = AsyncMock(side_effect=error)
        store.flush_namespace = AsyncMock(side_effect=error)
        return store

    @staticmethod
    def slow_store(delay: float = 1.0) -> MagicMock:
        """Create a store that answers every call after ``delay`` seconds."""
        store = MagicMock(spec=KeyValueStore)
        store.key_prefix = "test"

        async def delayed(*args, **kwargs):
            await asyncio.sleep(delay)
            return None

        store.get = AsyncMock(side_effect=delayed)
        store.set = AsyncMock(side_effect=delayed)
        store.delete = AsyncMock(side_effect=delayed)
        store.flush_namespace = AsyncMock(side_effect=delayed)
        return store

    @staticmethod
    def mock_redis() -> AsyncMock:
        """Create a redis.asyncio.Redis mock with the commands RedisClient uses."""
        client = AsyncMock()
        client.ping = AsyncMock(return_value=True)
        client.get = AsyncMock(return_value=None)
        client.set = AsyncMock(return_value=True)
        client.delete = AsyncMock(return_value=0)
        client.unlink = AsyncMock(return_value=0)
        client.scan = AsyncMock(return_value=(0, []))
        client.incr = AsyncMock(return_value=1)
        client.zadd = AsyncMock(return_value=1)
        client.zscore = AsyncMock(return_value=None)
        client.zrange = AsyncMock(return_value=[])
        client.zrem = AsyncMock(return_value=1)
        client.aclose = AsyncMock()
        client.connection_pool = MagicMock()
        return client
