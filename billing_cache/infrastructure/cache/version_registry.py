#!/usr/bin/env python3
"""
Version Registry

Bounded set of cache namespaces ("versions") with oldest-first eviction.

Algorithm:
    register(name)
        1. Known name → return the existing namespace
        2. Ledger already holds version_limit + 1 names → evict the oldest
        3. Record the name in the ledger (sequence = call order) and create
           the namespace
    clean_oldest_version()
        1. live <= version_limit → nothing to do
        2. Mark the oldest namespace EVICTING, flush it, then drop it from
           the ledger (flush-then-forget)
        3. On failure restore LIVE, keep it in the ledger and raise
           CacheEvictionError; the next triggering call retries

Invariant: at most version_limit + 1 namespaces are live at any time.

Registry mutations are serialized with an asyncio.Lock; cache reads and
writes through the namespaces never take it.

Author: Billing Platform Team
Date: 2025-12-13
"""

import asyncio

from billing_cache.core.config.constants import NamespaceState, Stage
from billing_cache.core.exceptions import CacheError, CacheEvictionError, ConfigurationError
from billing_cache.core.interfaces.cache import KeyValueStore
from billing_cache.core.logging.logger import get_logger
from billing_cache.core.validators import validate_namespace_name
from billing_cache.infrastructure.cache.namespace import CacheNamespace
from billing_cache.infrastructure.cache.version_ledger import InMemoryVersionLedger, VersionLedger

logger = get_logger(__name__)


class VersionRegistry:
    """
    Owns every CacheNamespace of the process.

    Usage:
        registry = VersionRegistry(store, version_limit=2)
        namespace = await registry.register("2025-12-13")
        ...
        await registry.clean_oldest_version()
    """

    def __init__(
        self,
        store: KeyValueStore,
        version_limit: int,
        ledger: VersionLedger | None = None,
        flush_timeout: float | None = None,
    ):
        if version_limit < 1:
            raise ConfigurationError(
                "version_limit must be at least 1",
                details={"version_limit": version_limit},
            )

        self._store = store
        self.version_limit = version_limit
        self._ledger = ledger or InMemoryVersionLedger()
        self._flush_timeout = flush_timeout
        self._namespaces: dict[str, CacheNamespace] = {}
        self._lock = asyncio.Lock()

    @property
    def store(self) -> KeyValueStore:
        return self._store

    async def register(self, name: str) -> CacheNamespace:
        """
        Create (or return the existing) namespace called ``name``.

        STAGE-CACHE.REGISTER

        Raises:
            InvalidNamespaceError: If the name is malformed
            CacheEvictionError: If making room for the new namespace failed;
                the name is not registered in that case
            CacheBackendError: If the ledger cannot be read or written
        """
        validate_namespace_name(name)

        async with self._lock:
            versions = await self._ledger.versions()
            self._forget_foreign_evictions(versions)
            known = {version for version, _ in versions}

            if name not in known and len(versions) > self.version_limit:
                await self._evict(*versions[0])

            sequence = await self._ledger.add(name)

            namespace = self._namespaces.get(name)
            if namespace is not None and namespace.is_live:
                namespace.sequence = sequence
                return namespace

            namespace = CacheNamespace(self._store, name, sequence, is_recorded=self._ledger.contains)
            self._namespaces[name] = namespace

            logger.info(
                "Cache namespace registered",
                stage=Stage.REGISTER.value,
                namespace=name,
                sequence=sequence,
                version_limit=self.version_limit,
            )
            return namespace

    async def clean_oldest_version(self) -> None:
        """
        Evict the oldest namespace if more than version_limit are live.

        STAGE-CACHE.EVICT

        Raises:
            CacheEvictionError: If the flush failed (namespace stays live)
        """
        async with self._lock:
            versions = await self._ledger.versions()
            self._forget_foreign_evictions(versions)

            if len(versions) <= self.version_limit:
                logger.debug(
                    "No namespace to evict",
                    stage=Stage.EVICT.value,
                    live=len(versions),
                    version_limit=self.version_limit,
                )
                return

            await self._evict(*versions[0])

    async def flush_all(self) -> None:
        """
        Flush and forget every namespace, oldest first.

        Raises:
            CacheEvictionError: On the first namespace that fails to flush
        """
        async with self._lock:
            versions = await self._ledger.versions()
            self._forget_foreign_evictions(versions)
            for name, sequence in versions:
                await self._evict(name, sequence)

    async def _evict(self, name: str, sequence: int) -> None:
        namespace = self._namespaces.get(name) or CacheNamespace(self._store, name, sequence)
        namespace.state = NamespaceState.EVICTING

        try:
            removed = await namespace.clean(timeout=self._flush_timeout)
            await self._ledger.remove(name)
        except CacheError as e:
            namespace.state = NamespaceState.LIVE
            logger.error(
                "Namespace eviction failed",
                stage=Stage.EVICT.value,
                namespace=name,
                sequence=sequence,
                error=str(e),
            )
            raise CacheEvictionError(
                f"Failed to evict cache namespace '{name}'",
                details={"namespace": name, "sequence": sequence, **e.details},
            ) from e
        except asyncio.CancelledError:
            namespace.state = NamespaceState.LIVE
            raise

        namespace.state = NamespaceState.EVICTED
        self._namespaces.pop(name, None)

        logger.info(
            "Cache namespace evicted",
            stage=Stage.EVICT.value,
            namespace=name,
            sequence=sequence,
            removed=removed,
        )

    def _forget_foreign_evictions(self, versions: list[tuple[str, int]]) -> None:
        """Drop local namespaces that another process has evicted from the shared ledger."""
        recorded = {name for name, _ in versions}
        for name, namespace in list(self._namespaces.items()):
            if namespace.state is NamespaceState.EVICTING:
                continue
            if name not in recorded or namespace.state is NamespaceState.EVICTED:
                if namespace.state is not NamespaceState.EVICTED:
                    namespace.state = NamespaceState.EVICTED
                    logger.info(
                        "Namespace evicted by another process",
                        stage=Stage.EVICT.value,
                        namespace=name,
                        sequence=namespace.sequence,
                    )
                del self._namespaces[name]

    async def live_versions(self) -> list[str]:
        """Names of the live namespaces, oldest first."""
        versions = await self._ledger.versions()
        self._forget_foreign_evictions(versions)
        return [name for name, _ in versions]

    def get(self, name: str) -> CacheNamespace | None:
        """Namespace created by this process, if still live."""
        namespace = self._namespaces.get(name)
        if namespace is None or namespace.state is NamespaceState.EVICTED:
            return None
        return namespace

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return sum(1 for namespace in self._namespaces.values() if namespace.state is not NamespaceState.EVICTED)
