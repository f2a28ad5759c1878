"""
Repository Exceptions

Errors raised by the cached repositories when the durable store is the
problem. Cache-side failures never surface through these.

Author: Billing Platform Team
Date: 2025-12-13
"""

from billing_cache.core.exceptions.base import BillingCacheError


class RepositoryError(BillingCacheError):
    """
    Raised when a durable store query or write fails.

    The driver exception is chained as ``__cause__``.
    """
    pass


class EntityNotFoundError(RepositoryError):
    """
    Raised when no active document matches a lookup.

    Not-found results are never cached; the next lookup queries the
    durable store again.

    Example:
        raise EntityNotFoundError(
            "Price group not found",
            details={"collection": "price_group", "query": {"region": "EUR"}}
        )
    """
    pass
