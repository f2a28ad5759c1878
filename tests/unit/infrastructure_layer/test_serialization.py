"""
Unit Tests for Cache Serialization

Tests encoding of entities and decoding into typed values.
"""

from datetime import datetime, timezone

import pytest
from pydantic import BaseModel

from billing_cache.core.exceptions import CacheSerializationError
from billing_cache.infrastructure.cache.serialization import CacheSerializer


class Item(BaseModel):
    id: str
    amount: float
    created_at: datetime


ITEM = Item(id="1", amount=1.5, created_at=datetime(2025, 12, 13, tzinfo=timezone.utc))


@pytest.mark.unit
class TestCacheSerializer:
    """Test CacheSerializer."""

    def test_dumps_returns_str(self):
        """Test that blobs are text (the Redis pool decodes responses)."""
        assert isinstance(CacheSerializer.dumps({"a": 1}), str)

    def test_model_decoded_into_model(self):
        """Test that a model comes back as the same model."""
        blob = CacheSerializer.dumps(ITEM)
        assert CacheSerializer.loads(blob, Item) == ITEM

    def test_list_of_models(self):
        """Test generic targets such as list[Model]."""
        blob = CacheSerializer.dumps([ITEM, ITEM])
        assert CacheSerializer.loads(blob, list[Item]) == [ITEM, ITEM]

    def test_without_model_returns_plain_json(self):
        """Test that decoding without a target returns parsed JSON."""
        assert CacheSerializer.loads(CacheSerializer.dumps(ITEM))["id"] == "1"

    def test_empty_list_is_a_value(self):
        """Test that an empty result is cacheable."""
        assert CacheSerializer.loads(CacheSerializer.dumps([]), list[Item]) == []

    def test_unserializable_value(self):
        """Test that unsupported values raise CacheSerializationError."""
        with pytest.raises(CacheSerializationError):
            CacheSerializer.dumps(object())

    def test_corrupt_blob(self):
        """Test that invalid JSON raises CacheSerializationError."""
        with pytest.raises(CacheSerializationError):
            CacheSerializer.loads("{not json")

    def test_blob_of_wrong_shape(self):
        """Test that JSON not matching the model raises CacheSerializationError."""
        with pytest.raises(CacheSerializationError):
            CacheSerializer.loads('{"id": "1"}', Item)
