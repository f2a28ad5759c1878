"""
Unit Tests for InMemoryKeyValueStore

Tests the KeyValueStore contract on the in-memory implementation.
"""

from datetime import timedelta

import pytest

from billing_cache.core.exceptions import InvalidTTLError
from billing_cache.core.interfaces.cache import KeyValueStore


@pytest.mark.unit
class TestInMemoryKeyValueStore:
    """Test suite for InMemoryKeyValueStore."""

    def test_implements_protocol(self, memory_store):
        """Test that the store satisfies the KeyValueStore protocol."""
        assert isinstance(memory_store, KeyValueStore)

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, memory_store):
        """Test that an absent key is None, not an error."""
        assert await memory_store.get("v1:missing") is None

    @pytest.mark.asyncio
    async def test_set_then_get(self, memory_store):
        """Test a basic write and read."""
        await memory_store.set("v1:k", "value")
        assert await memory_store.get("v1:k") == "value"

    @pytest.mark.asyncio
    async def test_keys_carry_root_prefix(self, memory_store):
        """Test the stored key layout."""
        await memory_store.set("v1:k", "value")
        assert memory_store.get_keys() == ["test:v1:k"]

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, memory_store, clock):
        """Test that entries expire after their TTL."""
        await memory_store.set("v1:k", "value", ttl=10)

        clock.advance(9)
        assert await memory_store.get("v1:k") == "value"

        clock.advance(1)
        assert await memory_store.get("v1:k") is None

    @pytest.mark.asyncio
    async def test_zero_ttl_never_expires(self, memory_store, clock):
        """Test that TTL 0 means no expiry."""
        await memory_store.set("v1:k", "value", ttl=0)
        clock.advance(10**6)
        assert await memory_store.get("v1:k") == "value"

    @pytest.mark.asyncio
    async def test_overwrite_clears_ttl(self, memory_store, clock):
        """Test that a set without TTL removes an earlier expiry."""
        await memory_store.set("v1:k", "a", ttl=timedelta(seconds=1))
        await memory_store.set("v1:k", "b")
        clock.advance(5)
        assert await memory_store.get("v1:k") == "b"

    @pytest.mark.asyncio
    async def test_negative_ttl_rejected(self, memory_store):
        """Test that a negative TTL is a validation error."""
        with pytest.raises(InvalidTTLError):
            await memory_store.set("v1:k", "value", ttl=-1)

    @pytest.mark.asyncio
    async def test_delete_counts_existing_keys(self, memory_store):
        """Test that delete is idempotent and counts removed keys."""
        await memory_store.set("v1:a", "1")

        assert await memory_store.delete("v1:a", "v1:b") == 1
        assert await memory_store.delete("v1:a") == 0

    @pytest.mark.asyncio
    async def test_flush_namespace_is_scoped(self, memory_store):
        """Test that flushing one namespace leaves the others."""
        await memory_store.set("v1:a", "1")
        await memory_store.set("v1:b", "2")
        await memory_store.set("v10:a", "3")
        await memory_store.set("v2:a", "4")

        assert await memory_store.flush_namespace("v1") == 2
        assert await memory_store.get("v10:a") == "3"
        assert await memory_store.get("v2:a") == "4"

    @pytest.mark.asyncio
    async def test_health_check(self, memory_store):
        """Test health reporting."""
        health = await memory_store.health_check()
        assert health["status"] == "healthy"
