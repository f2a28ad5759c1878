"""
Root of the billing cache exception tree.

Only BillingCacheError and ConfigurationError live here; cache, validation
and repository errors each have their own module.

Author: Billing Platform Team
Date: 2025-12-08
"""

from typing import Any


class BillingCacheError(Exception):
    """
    Base class of every error raised by billing_cache.

    Carries a request id for log correlation and a ``details`` dict that is
    logged as structured fields (keys, namespace, collection, ...).

    Example:
        raise CacheBackendError(
            "Redis GET failed",
            details={"key": "cache:v1:price_group:id:5f...", "command": "GET"},
        )
    """

    def __init__(self, message: str, request_id: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        # Copied so later with_context() calls never leak into the caller's dict.
        self.details: dict[str, Any] = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        """Payload for structured logs and error responses."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def with_context(self, **context: Any) -> "BillingCacheError":
        self.details.update(context)
        return self

    def with_suggestion(self, suggestion: str) -> "BillingCacheError":
        """Attach a hint for the operator, e.g. which setting to check."""
        return self.with_context(suggestion=suggestion)

    @classmethod
    def from_exception(
        cls, exc: BaseException, message: str | None = None, request_id: str | None = None, **details: Any
    ) -> "BillingCacheError":
        """
        Wrap a driver exception (redis, the durable store client, ...).

        The original type and text are kept in ``details``; chain the cause
        with ``raise ... from exc`` at the call site.
        """
        wrapped = {"original_error": type(exc).__name__, "original_message": str(exc)}
        wrapped.update(details)
        return cls(message or str(exc), request_id=request_id, details=wrapped)

    def __repr__(self) -> str:
        parts = [f"message='{self.message}'"]
        if self.request_id:
            parts.append(f"request_id='{self.request_id}'")
        if self.details:
            parts.append(f"details={self.details}")
        return f"{type(self).__name__}({', '.join(parts)})"


class ConfigurationError(BillingCacheError):
    """Invalid or missing configuration (bad version limit, policy, ...)."""
