"""
Cache-Related Exceptions

All exceptions raised by the cache backend, the namespace registry and the
cache-aside adapter. A cache miss is not an exception anywhere in this
hierarchy: lookups report it as ``None`` / ``CacheLookup(found=False)``.

Author: Billing Platform Team
Date: 2025-12-08
"""

from typing import Any

from billing_cache.core.exceptions.base import BillingCacheError


class CacheError(BillingCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheBackendError(CacheError):
    """
    Raised when a backend command fails.

    This is the "backend unavailable" condition: it is never used to signal
    that a key is absent.

    Common causes:
    - Redis server is down or restarting
    - Network connectivity issues
    - Memory limit exceeded
    """
    pass


class CacheConnectionError(CacheBackendError):
    """
    Raised when unable to connect to the cache backend.

    Common causes:
    - Redis server is down
    - Incorrect host/port configuration
    - Authentication failure
    """
    pass


class CacheTimeoutError(CacheBackendError):
    """Raised when a backend call exceeds its deadline."""
    pass


class CacheSerializationError(CacheError):
    """Raised when a value cannot be encoded, or a cached blob cannot be decoded."""
    pass


class CacheEvictionError(CacheError):
    """
    Raised when the oldest namespace could not be flushed.

    The namespace stays tracked as live; eviction is retried by the next
    call that triggers it.
    """
    pass


class CacheInvalidationError(CacheError):
    """
    Raised when cache bookkeeping fails after the durable write committed.

    The durable store already holds the new state, so callers must not retry
    the write itself. ``result`` carries the committed value and ``failed_keys``
    the keys that may still hold stale data.
    """

    def __init__(
        self,
        message: str,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
        result: Any = None,
        failed_keys: list[str] | None = None,
    ):
        super().__init__(message, request_id=request_id, details=details)
        self.result = result
        self.failed_keys = list(failed_keys or [])
        self.details.setdefault("committed", True)
        self.details.setdefault("failed_keys", self.failed_keys)

    @property
    def committed(self) -> bool:
        return bool(self.details.get("committed"))
