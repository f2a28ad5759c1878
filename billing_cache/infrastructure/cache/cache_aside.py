#!/usr/bin/env python3
"""
Cache-Aside Adapter

Architecture:
    CacheAsideAdapter (Public API used by every repository)
        ├── CacheNamespace (prefix-scoped backend access)
        ├── CacheSerializer (orjson + pydantic)
        └── CacheObserver (counters and structured logs)

Read path (get_or_load):
    1. Cache hit → decoded value, loader not called
    2. Miss → loader() against the durable store
       (backend errors, timeouts and undecodable entries count as misses)
    3. Loader success → best-effort SET; a failed SET is logged and the
       loaded value is still returned
    4. Loader failure → propagated, nothing cached

Write path (write_and_invalidate):
    1. mutator() against the durable store; failure → propagated, cache untouched
    2. DEL of the whole invalidation group plus the canonical by-id key
    3. Canonical key repopulated with the new value if the entity is still
       active and step 2 succeeded
    4. Cache failures after the commit follow the invalidation failure policy

Fragment updates (update_fragment, invalidate_aggregate) delete the parent
aggregate instead of patching it, so concurrent writers of different
fragments cannot merge into an inconsistent cached document.

Author: Billing Platform Team
Date: 2025-12-13
"""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple, TypeVar

from billing_cache.core.config.constants import InvalidationFailurePolicy, Stage
from billing_cache.core.exceptions import (
    CacheBackendError,
    CacheError,
    CacheInvalidationError,
    CacheSerializationError,
)
from billing_cache.core.interfaces.cache import TTL
from billing_cache.core.logging.logger import get_logger
from billing_cache.infrastructure.cache.keys import InvalidationGroup, KeyLike, render_key
from billing_cache.infrastructure.cache.namespace import CacheNamespace
from billing_cache.infrastructure.cache.serialization import CacheSerializer

logger = get_logger(__name__)

T = TypeVar("T")

Loader = Callable[[], Awaitable[T] | T]


class CacheLookup(NamedTuple):
    """Result of a cache read: ``found`` is False on a miss."""

    value: Any
    found: bool


async def _call(fn: Callable[[], Any]) -> Any:
    result = fn()
    if inspect.isawaitable(result):
        result = await result
    return result


# =============================================================================
# OBSERVABILITY
# =============================================================================


class CacheObserver:
    """
    Counts cache outcomes for one adapter.

    Metrics Tracked:
    - hits, misses, loads
    - degraded reads (backend error or corrupt entry treated as a miss)
    - failed populates and failed invalidations
    """

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.loads = 0
        self.degraded_reads = 0
        self.populate_failures = 0
        self.invalidation_failures = 0

    def stats(self) -> dict[str, Any]:
        lookups = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / lookups if lookups else 0.0,
            "loads": self.loads,
            "degraded_reads": self.degraded_reads,
            "populate_failures": self.populate_failures,
            "invalidation_failures": self.invalidation_failures,
        }


# =============================================================================
# PUBLIC API
# =============================================================================


class CacheAsideAdapter:
    """
    Cache-aside operations over one namespace.

    Usage:
        cache = CacheAsideAdapter(namespace)

        group = await cache.get_or_load(
            PRICE_GROUP_BY_ID.key(id=oid),
            lambda: store.find_one({"_id": oid, "is_active": True}),
            model=PriceGroup,
        )
    """

    def __init__(
        self,
        namespace: CacheNamespace,
        *,
        default_ttl: TTL = None,
        failure_policy: InvalidationFailurePolicy | str = InvalidationFailurePolicy.RAISE,
        timeout: float | None = None,
        serializer: CacheSerializer | None = None,
    ):
        self.namespace = namespace
        self.default_ttl = default_ttl
        self.failure_policy = InvalidationFailurePolicy(failure_policy)
        self._timeout = timeout
        self._serializer = serializer or CacheSerializer()
        self.observer = CacheObserver()

    # -------------------------------------------------------------------------
    # Basic operations
    # -------------------------------------------------------------------------

    async def get(self, key: KeyLike, *, model: Any = None) -> CacheLookup:
        """
        Read and decode ``key``.

        STAGE-CACHE.GET

        Never raises for cache-layer problems: an unreachable backend or a
        corrupt entry is logged and reported as a miss.
        """
        rendered = render_key(key)

        try:
            blob = await self.namespace.get(rendered, timeout=self._timeout)
        except CacheBackendError as e:
            self.observer.degraded_reads += 1
            self.observer.misses += 1
            logger.warning(
                "Cache read failed, treating as miss",
                stage=Stage.GET.value,
                namespace=self.namespace.name,
                key=rendered,
                error=str(e),
            )
            return CacheLookup(None, False)

        if blob is None:
            self.observer.misses += 1
            return CacheLookup(None, False)

        try:
            value = self._serializer.loads(blob, model)
        except CacheSerializationError as e:
            self.observer.degraded_reads += 1
            self.observer.misses += 1
            logger.warning(
                "Cached value undecodable, treating as miss",
                stage=Stage.GET.value,
                namespace=self.namespace.name,
                key=rendered,
                error=e.message,
            )
            return CacheLookup(None, False)

        self.observer.hits += 1
        return CacheLookup(value, True)

    async def set(self, key: KeyLike, value: Any, ttl: TTL = None) -> None:
        """
        Encode and store ``value``.

        STAGE-CACHE.SET

        Raises:
            CacheBackendError: If the backend rejects the write
            CacheSerializationError: If the value cannot be encoded
        """
        blob = self._serializer.dumps(value)
        await self.namespace.set(
            key,
            blob,
            self.default_ttl if ttl is None else ttl,
            timeout=self._timeout,
        )

    async def delete(self, *keys: KeyLike) -> int:
        """
        Delete keys; absent keys are fine.

        Raises:
            CacheBackendError: If the backend rejects the delete
        """
        return await self.namespace.delete(*keys, timeout=self._timeout)

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    async def get_or_load(
        self,
        key: KeyLike,
        loader: Loader,
        *,
        ttl: TTL = None,
        model: Any = None,
    ) -> Any:
        """
        Cached value for ``key``, or the loader's result on a miss.

        STAGE-CACHE.LOAD

        The loader is invoked at most once per call. Its exceptions
        propagate unchanged and nothing is cached in that case; a None
        result (nothing found) is returned without being cached either.
        """
        lookup = await self.get(key, model=model)
        if lookup.found:
            return lookup.value

        value = await _call(loader)
        self.observer.loads += 1

        if value is None:
            logger.debug(
                "Loader found nothing, not caching",
                stage=Stage.LOAD.value,
                namespace=self.namespace.name,
                key=render_key(key),
            )
            return None

        try:
            await self.set(key, value, ttl)
        except CacheError as e:
            self.observer.populate_failures += 1
            logger.error(
                "Cache populate failed",
                stage=Stage.LOAD.value,
                namespace=self.namespace.name,
                key=render_key(key),
                error=str(e),
            )

        return value

    # -------------------------------------------------------------------------
    # Write path
    # -------------------------------------------------------------------------

    async def write_and_invalidate(
        self,
        mutator: Loader,
        group: InvalidationGroup,
        canonical_key: KeyLike,
        *,
        is_active: Callable[[Any], bool] | None = None,
        ttl: TTL = None,
    ) -> Any:
        """
        Run ``mutator``, then bring the cache in line with its result.

        STAGE-CACHE.INVALIDATE

        Args:
            mutator: Durable write; returns the entity as stored
            group: Keys derived from the entity (deleted)
            canonical_key: By-id key (deleted, then repopulated if active)
            is_active: Predicate on the stored entity; when it returns False
                the canonical key stays deleted

        Returns:
            The mutator's result

        Raises:
            Whatever the mutator raises (cache untouched)
            CacheInvalidationError: Under the ``raise`` policy, when cache
                bookkeeping failed after the durable write committed
        """
        value = await _call(mutator)

        keys = [*group.rendered(), render_key(canonical_key)]
        keys = list(dict.fromkeys(keys))

        try:
            await self.delete(*keys)
        except CacheError as e:
            await self._invalidation_failed(keys, value, e)
            return value

        repopulate = value is not None and (is_active is None or bool(is_active(value)))
        if repopulate:
            try:
                await self.set(canonical_key, value, ttl)
            except CacheError as e:
                await self._invalidation_failed([render_key(canonical_key)], value, e)
                return value

        logger.debug(
            "Cache invalidated after write",
            stage=Stage.INVALIDATE.value,
            namespace=self.namespace.name,
            keys=keys,
            repopulated=repopulate,
        )
        return value

    async def update_fragment(self, mutator: Loader, *aggregate_keys: KeyLike) -> Any:
        """
        Run a partial-field durable update and drop the cached aggregates.

        The cached parent document is deleted, never merged in place: two
        writers updating different fragments would otherwise race to write
        back conflicting copies of the aggregate.
        """
        value = await _call(mutator)
        await self.invalidate_aggregate(*aggregate_keys, result=value)
        return value

    async def invalidate_aggregate(self, *keys: KeyLike, result: Any = None) -> list[str]:
        """
        Delete keys after a committed durable write.

        Returns:
            Keys that could not be deleted (only non-empty under the ``log``
            policy; the ``raise`` policy raises CacheInvalidationError)
        """
        rendered = list(dict.fromkeys(render_key(key) for key in keys))
        if not rendered:
            return []

        try:
            await self.delete(*rendered)
        except CacheError as e:
            await self._invalidation_failed(rendered, result, e)
            return rendered

        logger.debug(
            "Aggregates invalidated",
            stage=Stage.DELETE.value,
            namespace=self.namespace.name,
            keys=rendered,
        )
        return []

    async def _invalidation_failed(self, keys: list[str], value: Any, error: CacheError) -> None:
        self.observer.invalidation_failures += 1
        logger.error(
            "Cache invalidation failed after committed write",
            stage=Stage.INVALIDATE.value,
            namespace=self.namespace.name,
            keys=keys,
            policy=self.failure_policy.value,
            error=str(error),
        )

        if self.failure_policy is InvalidationFailurePolicy.RAISE:
            raise CacheInvalidationError(
                "Cache invalidation failed after the durable write committed",
                details={"namespace": self.namespace.name, "error": str(error)},
                result=value,
                failed_keys=keys,
            ) from error

    def stats(self) -> dict[str, Any]:
        return {"namespace": self.namespace.name, **self.observer.stats()}
