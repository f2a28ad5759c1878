"""
Cache Value Serialization

Converts entities to the opaque string blobs stored in the backend and back.

Serialization Strategy:
- pydantic models are dumped in JSON mode first (datetimes, decimals, enums)
- Everything else goes straight through orjson
- Blobs are UTF-8 strings because the Redis pool decodes responses

Deserialization Strategy:
- Without a target type the parsed JSON is returned as-is
- With a target type (a model, ``list[Model]``, ...) the parsed JSON is
  validated through a cached pydantic TypeAdapter
"""

from functools import lru_cache
from typing import Any

import orjson
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from billing_cache.core.exceptions import CacheSerializationError


def _default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


class CacheSerializer:
    """Encodes values for the cache and decodes cached blobs."""

    @staticmethod
    def dumps(value: Any) -> str:
        """
        Encode a value.

        Raises:
            CacheSerializationError: If the value cannot be encoded
        """
        try:
            return orjson.dumps(value, default=_default, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")
        except TypeError as e:
            raise CacheSerializationError.from_exception(
                e, message=f"Cannot serialize {type(value).__name__} for cache"
            )

    @staticmethod
    def loads(blob: str | bytes, model: Any = None) -> Any:
        """
        Decode a cached blob, optionally validating it into ``model``.

        Raises:
            CacheSerializationError: If the blob is corrupt or does not match
                the target type
        """
        try:
            data = orjson.loads(blob)
        except orjson.JSONDecodeError as e:
            raise CacheSerializationError.from_exception(e, message="Cached value is not valid JSON")

        if model is None:
            return data

        try:
            return _adapter(model).validate_python(data)
        except PydanticValidationError as e:
            raise CacheSerializationError.from_exception(
                e, message=f"Cached value does not match {getattr(model, '__name__', model)}"
            )
