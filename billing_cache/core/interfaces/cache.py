"""
Key-Value Store Protocol

This module defines the capability every cache backend provides to the
namespace layer.

Architectural Decision: Protocol-based abstraction
- Production uses RedisClient, tests and local runs use InMemoryKeyValueStore
- Namespaces and the version registry depend on the protocol only
- Type-safe interface with runtime checking

Author: Billing Platform Team
Date: 2025-12-08
"""

from datetime import timedelta
from typing import Protocol, runtime_checkable

TTL = int | float | timedelta | None


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Minimal Get/Set/Delete/Flush capability over a remote key-value backend.

    Keys passed in are namespace-qualified (``<namespace>:<key>``); the store
    applies its own root prefix on top.

    Contract:
    - ``get`` returns ``None`` only when the key is absent. A backend failure
      raises CacheBackendError instead, so the two are never conflated.
    - ``delete`` is idempotent: deleting an absent key succeeds.
    - ``flush_namespace`` removes every key under one namespace prefix.
    - Every call accepts a deadline in seconds; exceeding it raises
      CacheTimeoutError.
    """

    key_prefix: str

    async def get(self, key: str, *, timeout: float | None = None) -> str | None:
        """
        Get value from the backend.

        Raises:
            CacheBackendError: If the backend cannot answer
        """
        ...

    async def set(
        self,
        key: str,
        value: str,
        ttl: TTL = None,
        *,
        timeout: float | None = None,
    ) -> None:
        """
        Store a value. ``ttl`` of ``None`` or zero means no expiry.

        Raises:
            CacheBackendError: If the write fails
            InvalidTTLError: If ttl is negative
        """
        ...

    async def delete(self, *keys: str, timeout: float | None = None) -> int:
        """
        Delete keys. Returns the number of keys that existed.

        Raises:
            CacheBackendError: If the delete fails
        """
        ...

    async def flush_namespace(self, name: str, *, timeout: float | None = None) -> int:
        """
        Remove every key stored under ``name``. Returns the number removed.

        Raises:
            CacheBackendError: If the flush fails
        """
        ...
