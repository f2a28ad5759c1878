"""
Validation Exceptions

Non-retryable input errors. They are raised before any cache or durable
store access takes place.

Author: Billing Platform Team
Date: 2025-12-08
"""

from billing_cache.core.exceptions.base import BillingCacheError


class ValidationError(BillingCacheError):
    """
    Raised when caller-supplied input is malformed.

    This is the base class for all validation-related errors.
    """
    pass


class InvalidIdentifierError(ValidationError):
    """
    Raised when an identifier cannot be parsed into the durable store's id type.

    Example:
        raise InvalidIdentifierError(
            f"'{value}' is not a valid object id",
            details={"field": "merchant_id", "value": value}
        )
    """
    pass


class InvalidNamespaceError(ValidationError):
    """Raised when a namespace name contains characters outside [A-Za-z0-9_.-]."""
    pass


class InvalidTTLError(ValidationError):
    """Raised when a TTL is negative or not a number of seconds."""
    pass
