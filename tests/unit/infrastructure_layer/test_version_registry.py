"""
Unit Tests for VersionRegistry

Tests registration order, the live-namespace bound, flush-then-forget
eviction and retry after a failed eviction.
"""

import asyncio

import pytest

from billing_cache.core.config.constants import NamespaceState
from billing_cache.core.exceptions import (
    CacheBackendError,
    CacheEvictionError,
    ConfigurationError,
    InvalidNamespaceError,
)
from billing_cache.infrastructure.cache.version_ledger import InMemoryVersionLedger
from billing_cache.infrastructure.cache.version_registry import VersionRegistry


@pytest.mark.unit
class TestRegistration:
    """Test namespace registration."""

    def test_version_limit_must_be_positive(self, memory_store):
        """Test that a limit below 1 is a configuration error."""
        with pytest.raises(ConfigurationError):
            VersionRegistry(memory_store, version_limit=0)

    @pytest.mark.asyncio
    async def test_register_returns_live_namespace(self, registry):
        """Test that registration creates a live namespace."""
        namespace = await registry.register("v1")

        assert namespace.name == "v1"
        assert namespace.is_live
        assert "v1" in registry

    @pytest.mark.asyncio
    async def test_register_known_name_returns_same_namespace(self, registry):
        """Test that registering twice does not create a second namespace."""
        first = await registry.register("v1")
        await registry.register("v2")

        assert await registry.register("v1") is first
        assert await registry.live_versions() == ["v1", "v2"]

    @pytest.mark.asyncio
    async def test_sequence_follows_call_order(self, registry):
        """Test that earlier registrations are older."""
        a = await registry.register("b-release")
        b = await registry.register("a-release")

        assert a.sequence < b.sequence
        assert await registry.live_versions() == ["b-release", "a-release"]

    @pytest.mark.asyncio
    async def test_invalid_name(self, registry):
        """Test that malformed names are rejected before anything is recorded."""
        with pytest.raises(InvalidNamespaceError):
            await registry.register("v1:x")

        assert await registry.live_versions() == []

    @pytest.mark.asyncio
    async def test_concurrent_registration_of_same_name(self, registry):
        """Test that concurrent registrations of one name share a namespace."""
        results = await asyncio.gather(*(registry.register("v1") for _ in range(5)))

        assert all(result is results[0] for result in results)
        assert len(registry) == 1


@pytest.mark.unit
class TestEviction:
    """Test the live-namespace bound and eviction."""

    @pytest.mark.asyncio
    async def test_seeded_scenario(self, memory_store):
        """Test limit 3, v0..v4 registered, two cleans leave v2, v3, v4."""
        registry = VersionRegistry(memory_store, version_limit=3)
        namespaces = {}
        for name in ("v0", "v1", "v2", "v3", "v4"):
            namespaces[name] = await registry.register(name)
            await namespaces[name].set("price_group:id:1", f"blob-{name}")

        await registry.clean_oldest_version()
        await registry.clean_oldest_version()

        assert set(await registry.live_versions()) == {"v2", "v3", "v4"}
        for name in ("v0", "v1"):
            assert await namespaces[name].get("price_group:id:1") is None
            assert await memory_store.get(f"{name}:price_group:id:1") is None
        for name in ("v2", "v3", "v4"):
            assert await namespaces[name].get("price_group:id:1") == f"blob-{name}"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit,extra", [(1, 1), (2, 3), (3, 2)])
    async def test_bounded_versions(self, memory_store, limit, extra):
        """Test that limit + N registrations and N cleans leave the newest limit."""
        registry = VersionRegistry(memory_store, version_limit=limit)
        names = [f"v{i}" for i in range(limit + extra)]

        for name in names:
            await registry.register(name)
            assert len(await registry.live_versions()) <= limit + 1

        for _ in range(extra):
            await registry.clean_oldest_version()

        assert await registry.live_versions() == names[-limit:]

    @pytest.mark.asyncio
    async def test_register_evicts_when_bound_reached(self, registry):
        """Test that the registration exceeding limit + 1 evicts the oldest first."""
        v1 = await registry.register("v1")
        await registry.register("v2")
        await registry.register("v3")

        await registry.register("v4")

        assert v1.state is NamespaceState.EVICTED
        assert await registry.live_versions() == ["v2", "v3", "v4"]

    @pytest.mark.asyncio
    async def test_clean_is_noop_within_limit(self, registry):
        """Test that cleaning with at most version_limit live namespaces does nothing."""
        await registry.register("v1")
        await registry.register("v2")

        await registry.clean_oldest_version()

        assert await registry.live_versions() == ["v1", "v2"]

    @pytest.mark.asyncio
    async def test_evicted_keys_are_misses(self, registry, memory_store):
        """Test eviction visibility."""
        v1 = await registry.register("v1")
        for i in range(20):
            await v1.set(f"k{i}", "x")
        await registry.register("v2")
        await registry.register("v3")

        await registry.clean_oldest_version()

        assert all([await v1.get(f"k{i}") is None for i in range(20)])
        assert not any(key.startswith("test:v1:") for key in memory_store.get_keys())
        assert registry.get("v1") is None

    @pytest.mark.asyncio
    async def test_flush_all(self, registry, memory_store):
        """Test that flush_all removes every namespace."""
        v1 = await registry.register("v1")
        v2 = await registry.register("v2")
        await v1.set("k", "1")
        await v2.set("k", "2")

        await registry.flush_all()

        assert await registry.live_versions() == []
        assert len(memory_store) == 0
        assert len(registry) == 0


@pytest.mark.unit
class TestEvictionFailure:
    """Test failed eviction and its retry."""

    @pytest.mark.asyncio
    async def test_failed_clean_keeps_namespace_live(self, flaky_store):
        """Test that a failed flush restores LIVE and keeps the namespace tracked."""
        registry = VersionRegistry(flaky_store, version_limit=1)
        v1 = await registry.register("v1")
        await v1.set("k", "blob")
        await registry.register("v2")

        flaky_store.failing["flush_namespace"] = CacheBackendError("Redis down")
        with pytest.raises(CacheEvictionError) as exc_info:
            await registry.clean_oldest_version()

        assert exc_info.value.details["namespace"] == "v1"
        assert v1.state is NamespaceState.LIVE
        assert await registry.live_versions() == ["v1", "v2"]
        assert await v1.get("k") == "blob"

    @pytest.mark.asyncio
    async def test_eviction_retried_on_next_call(self, flaky_store):
        """Test that the next triggering call retries the eviction."""
        registry = VersionRegistry(flaky_store, version_limit=1)
        v1 = await registry.register("v1")
        await registry.register("v2")

        flaky_store.failing["flush_namespace"] = CacheBackendError("Redis down")
        with pytest.raises(CacheEvictionError):
            await registry.clean_oldest_version()

        del flaky_store.failing["flush_namespace"]
        await registry.clean_oldest_version()

        assert v1.state is NamespaceState.EVICTED
        assert await registry.live_versions() == ["v2"]

    @pytest.mark.asyncio
    async def test_register_not_recorded_when_eviction_fails(self, flaky_store):
        """Test that a registration needing an eviction fails as a whole."""
        registry = VersionRegistry(flaky_store, version_limit=1)
        await registry.register("v1")
        await registry.register("v2")

        flaky_store.failing["flush_namespace"] = CacheBackendError("Redis down")
        with pytest.raises(CacheEvictionError):
            await registry.register("v3")

        assert "v3" not in registry
        assert await registry.live_versions() == ["v1", "v2"]

    @pytest.mark.asyncio
    async def test_shared_ledger_evicts_foreign_namespace(self, memory_store):
        """Test that a namespace created by another process is flushed by name."""
        ledger = InMemoryVersionLedger()
        other_process = VersionRegistry(memory_store, version_limit=1, ledger=ledger)
        old = await other_process.register("v1")
        await old.set("k", "blob")

        registry = VersionRegistry(memory_store, version_limit=1, ledger=ledger)
        await registry.register("v2")
        await registry.register("v3")

        assert await registry.live_versions() == ["v2", "v3"]
        assert await memory_store.get("v1:k") is None

        assert await old.set("k", "late write") is False
        assert old.state is NamespaceState.EVICTED
        assert await memory_store.get("v1:k") is None

    @pytest.mark.asyncio
    async def test_foreign_eviction_forgotten_locally(self, memory_store):
        """Test that a registry drops namespaces another process evicted."""
        ledger = InMemoryVersionLedger()
        other_process = VersionRegistry(memory_store, version_limit=1, ledger=ledger)
        old = await other_process.register("v1")

        registry = VersionRegistry(memory_store, version_limit=1, ledger=ledger)
        await registry.register("v2")
        await registry.register("v3")

        assert await other_process.live_versions() == ["v2", "v3"]
        assert "v1" not in other_process
        assert len(other_process) == 0
        assert old.state is NamespaceState.EVICTED
        assert await old.get("k") is None

    @pytest.mark.asyncio
    async def test_reregistering_foreign_evicted_name(self, memory_store):
        """Test that registering an evicted name again yields a fresh live namespace."""
        ledger = InMemoryVersionLedger()
        other_process = VersionRegistry(memory_store, version_limit=1, ledger=ledger)
        old = await other_process.register("v1")

        registry = VersionRegistry(memory_store, version_limit=1, ledger=ledger)
        await registry.register("v2")
        await registry.register("v3")

        fresh = await other_process.register("v1")

        assert fresh is not old
        assert fresh.is_live
        assert await other_process.live_versions() == ["v3", "v1"]
