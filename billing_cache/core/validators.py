"""
Input Validators

Checks applied before any cache or durable store access: object ids,
namespace names and TTLs. Every failure is a ValidationError subclass and is
never retried.
"""

from datetime import timedelta
from typing import Annotated

from pydantic import StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from billing_cache.core.config.constants import NAMESPACE_NAME_PATTERN, OBJECT_ID_PATTERN
from billing_cache.core.exceptions import (
    InvalidIdentifierError,
    InvalidNamespaceError,
    InvalidTTLError,
)
from billing_cache.core.interfaces.cache import TTL

ObjectIdStr = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, pattern=OBJECT_ID_PATTERN)]

_object_id_adapter = TypeAdapter(ObjectIdStr)


def parse_object_id(value: object, field: str = "id") -> str:
    """
    Parse a durable store object id (24 hex characters).

    Returns the canonical lower-case form so that cache keys built from the
    same id never differ by case.

    Raises:
        InvalidIdentifierError: If the value is not a valid object id
    """
    try:
        return _object_id_adapter.validate_python(value)
    except PydanticValidationError as e:
        raise InvalidIdentifierError(
            f"'{value}' is not a valid object id",
            details={"field": field, "value": str(value), "errors": e.error_count()},
        ) from e


def validate_namespace_name(name: str) -> str:
    """Raises InvalidNamespaceError unless name matches [A-Za-z0-9_.-]+."""
    if not isinstance(name, str) or not NAMESPACE_NAME_PATTERN.match(name):
        raise InvalidNamespaceError(
            f"Invalid cache namespace name: {name!r}",
            details={"name": str(name)},
        ).with_suggestion("Use letters, digits, '_', '.' or '-' only")
    return name


def normalize_ttl(ttl: TTL) -> timedelta | None:
    """
    Convert a TTL into a timedelta, or None for "no expiry".

    ``None`` and zero both mean the entry lives until it is invalidated.
    """
    if ttl is None:
        return None

    if isinstance(ttl, bool) or not isinstance(ttl, (int, float, timedelta)):
        raise InvalidTTLError(f"Unsupported TTL type: {type(ttl).__name__}", details={"ttl": repr(ttl)})

    delta = ttl if isinstance(ttl, timedelta) else timedelta(seconds=ttl)

    if delta < timedelta(0):
        raise InvalidTTLError("TTL must not be negative", details={"ttl": delta.total_seconds()})

    if delta == timedelta(0):
        return None

    return delta
