"""
In-Memory Key-Value Store

Process-local implementation of the KeyValueStore protocol. Used by the test
suite and for running a service without Redis; it is not shared across
workers.

Implementation Details:
- Plain dict guarded by asyncio.Lock
- Per-key expiry deadlines on the monotonic clock, checked lazily on read
- Same key layout as RedisClient (``<prefix>:<namespace>:<key>``)
"""

import asyncio
import time

from billing_cache.core.config.constants import KEY_SEPARATOR
from billing_cache.core.interfaces.cache import TTL
from billing_cache.core.validators import normalize_ttl


class InMemoryKeyValueStore:
    """Dictionary-backed KeyValueStore with TTL support."""

    def __init__(self, key_prefix: str = "cache", clock=time.monotonic):
        self.key_prefix = key_prefix
        self._clock = clock
        self._data: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def _full_key(self, key: str) -> str:
        return f"{self.key_prefix}{KEY_SEPARATOR}{key}"

    def _expired(self, full_key: str) -> bool:
        deadline = self._expires_at.get(full_key)
        return deadline is not None and self._clock() >= deadline

    def _drop(self, full_key: str) -> bool:
        self._expires_at.pop(full_key, None)
        return self._data.pop(full_key, None) is not None

    async def get(self, key: str, *, timeout: float | None = None) -> str | None:
        full_key = self._full_key(key)
        async with self._lock:
            if self._expired(full_key):
                self._drop(full_key)
                return None
            return self._data.get(full_key)

    async def set(self, key: str, value: str, ttl: TTL = None, *, timeout: float | None = None) -> None:
        delta = normalize_ttl(ttl)
        full_key = self._full_key(key)
        async with self._lock:
            self._data[full_key] = value
            if delta is None:
                self._expires_at.pop(full_key, None)
            else:
                self._expires_at[full_key] = self._clock() + delta.total_seconds()

    async def delete(self, *keys: str, timeout: float | None = None) -> int:
        async with self._lock:
            removed = 0
            for key in keys:
                full_key = self._full_key(key)
                live = not self._expired(full_key)
                if self._drop(full_key) and live:
                    removed += 1
            return removed

    async def flush_namespace(self, name: str, *, timeout: float | None = None) -> int:
        prefix = self._full_key(f"{name}{KEY_SEPARATOR}")
        async with self._lock:
            doomed = [key for key in self._data if key.startswith(prefix)]
            for key in doomed:
                self._drop(key)
            return len(doomed)

    async def health_check(self) -> dict:
        return {"status": "healthy", "type": "in_memory", "keys": len(self._data)}

    def get_keys(self) -> list[str]:
        """All stored keys, including the root prefix (expired ones may linger)."""
        return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)
