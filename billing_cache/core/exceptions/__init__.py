"""
Exception Module

Structured exception hierarchy for the billing cache layer.

Module Structure:
-----------------
- **base.py**: BillingCacheError base class + ConfigurationError
- **cache.py**: Backend, eviction, serialization and invalidation errors
- **validation.py**: Malformed identifiers, namespace names and TTLs
- **repository.py**: Durable store failures and missing entities

Usage:
------
```python
from billing_cache.core.exceptions import CacheBackendError, InvalidIdentifierError
```
"""

from billing_cache.core.exceptions.base import BillingCacheError, ConfigurationError
from billing_cache.core.exceptions.cache import (
    CacheBackendError,
    CacheConnectionError,
    CacheError,
    CacheEvictionError,
    CacheInvalidationError,
    CacheSerializationError,
    CacheTimeoutError,
)
from billing_cache.core.exceptions.repository import EntityNotFoundError, RepositoryError
from billing_cache.core.exceptions.validation import (
    InvalidIdentifierError,
    InvalidNamespaceError,
    InvalidTTLError,
    ValidationError,
)

__all__ = [
    # Base
    "BillingCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheBackendError",
    "CacheConnectionError",
    "CacheTimeoutError",
    "CacheSerializationError",
    "CacheEvictionError",
    "CacheInvalidationError",
    # Validation
    "ValidationError",
    "InvalidIdentifierError",
    "InvalidNamespaceError",
    "InvalidTTLError",
    # Repository
    "RepositoryError",
    "EntityNotFoundError",
]
