#!/usr/bin/env python3
"""
Cache Bootstrap

Builds the cache stack once at service startup and tears it down at
shutdown. Nothing here is a module-level singleton: the returned
CacheContext is passed to whatever needs it (repositories, health
endpoints, deployment hooks).

Startup order:
    1. RedisClient connect (retried with backoff)
    2. VersionRegistry over a ledger shared through Redis
    3. Register CACHE_VERSION (may evict the namespace of an old deployment)
    4. CacheAsideAdapter bound to that namespace

Author: Billing Platform Team
Date: 2025-12-13
"""

from dataclasses import dataclass
from typing import Any

from billing_cache.core.config.constants import Stage
from billing_cache.core.config.settings import Settings, get_settings
from billing_cache.core.interfaces.cache import KeyValueStore
from billing_cache.core.logging.logger import get_logger
from billing_cache.infrastructure.cache.cache_aside import CacheAsideAdapter
from billing_cache.infrastructure.cache.namespace import CacheNamespace
from billing_cache.infrastructure.cache.redis_client import RedisClient
from billing_cache.infrastructure.cache.version_ledger import RedisVersionLedger, VersionLedger
from billing_cache.infrastructure.cache.version_registry import VersionRegistry

logger = get_logger(__name__)


@dataclass
class CacheContext:
    """Everything a service holds on to for the lifetime of the process."""

    store: KeyValueStore
    registry: VersionRegistry
    namespace: CacheNamespace
    adapter: CacheAsideAdapter
    settings: Settings | None = None

    async def health_check(self) -> dict[str, Any]:
        health: dict[str, Any] = {}
        if hasattr(self.store, "health_check"):
            health = await self.store.health_check()
        if self.settings is not None:
            app = self.settings.app
            health["service"] = app.APP_NAME
            health["version"] = app.APP_VERSION
            health["environment"] = app.ENVIRONMENT
        health["namespace"] = self.namespace.name
        health["live_versions"] = await self.registry.live_versions()
        health["cache"] = self.adapter.stats()
        return health


def build_adapter(namespace: CacheNamespace, settings: Settings) -> CacheAsideAdapter:
    cache_settings = settings.cache
    return CacheAsideAdapter(
        namespace,
        default_ttl=cache_settings.CACHE_DEFAULT_TTL or None,
        failure_policy=cache_settings.CACHE_INVALIDATION_FAILURE_POLICY,
        timeout=cache_settings.CACHE_OPERATION_TIMEOUT,
    )


async def init_cache(
    settings: Settings | None = None,
    *,
    store: KeyValueStore | None = None,
    ledger: VersionLedger | None = None,
) -> CacheContext:
    """
    Connect the backend and register the configured cache version.

    STAGE-CACHE.INIT

    Args:
        settings: Defaults to get_settings()
        store: Pre-built store (tests pass an InMemoryKeyValueStore);
            a RedisClient is created and connected when omitted
        ledger: Version ledger; shared through Redis when the store is a
            RedisClient, process-local otherwise

    Raises:
        CacheConnectionError: If Redis is unreachable after all retries
        CacheEvictionError: If evicting an old namespace failed
    """
    settings = settings or get_settings()
    cache_settings = settings.cache

    owns_store = store is None
    if owns_store:
        store = RedisClient(settings)
        await store.connect()

    if ledger is None and isinstance(store, RedisClient):
        ledger = RedisVersionLedger(store)

    try:
        registry = VersionRegistry(
            store,
            version_limit=cache_settings.CACHE_VERSION_LIMIT,
            ledger=ledger,
        )
        namespace = await registry.register(cache_settings.CACHE_VERSION)
        live_versions = await registry.live_versions()
    except Exception:
        if owns_store:
            await store.disconnect()
        raise

    adapter = build_adapter(namespace, settings)

    logger.info(
        "Cache initialized",
        stage=Stage.INITIALIZATION.value,
        namespace=namespace.name,
        version_limit=registry.version_limit,
        live_versions=live_versions,
    )
    return CacheContext(store=store, registry=registry, namespace=namespace, adapter=adapter, settings=settings)


async def close_cache(context: CacheContext) -> None:
    """Release backend connections."""
    if isinstance(context.store, RedisClient):
        await context.store.disconnect()
    logger.info("Cache closed", stage=Stage.INITIALIZATION.value, namespace=context.namespace.name)
