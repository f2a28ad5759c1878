"""
Core Module

Foundational components: configuration, logging, exceptions, protocols and
input validation.
"""

from .exceptions import (
    BillingCacheError,
    CacheBackendError,
    CacheConnectionError,
    CacheError,
    CacheEvictionError,
    CacheInvalidationError,
    CacheSerializationError,
    CacheTimeoutError,
    ConfigurationError,
    EntityNotFoundError,
    InvalidIdentifierError,
    InvalidNamespaceError,
    InvalidTTLError,
    RepositoryError,
    ValidationError,
)
from .logging import (
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    set_request_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    "log_stage",
    "BillingCacheError",
    "ConfigurationError",
    "CacheError",
    "CacheBackendError",
    "CacheConnectionError",
    "CacheTimeoutError",
    "CacheSerializationError",
    "CacheEvictionError",
    "CacheInvalidationError",
    "ValidationError",
    "InvalidIdentifierError",
    "InvalidNamespaceError",
    "InvalidTTLError",
    "RepositoryError",
    "EntityNotFoundError",
]
