"""
Redis Key-Value Store

Architecture:
    RedisClient (Public API, implements KeyValueStore)
        ├── ConnectionManager (Connection lifecycle, retries)
        ├── OperationExecutor (GET/SET/DEL/flush with deadlines and error mapping)
        └── HealthMonitor (Ping latency and pool usage)

Key layout: ``<CACHE_KEY_PREFIX>:<namespace>:<key>``. Flushing a namespace
walks ``<prefix>:<namespace>:*`` with SCAN and removes keys with UNLINK, so
no single command blocks the server on a large namespace.

Author: Billing Platform Team
Date: 2025-12-13
"""

import asyncio
import time
from collections.abc import Awaitable
from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from billing_cache.core.config.constants import KEY_SEPARATOR, Stage
from billing_cache.core.config.settings import Settings, get_settings
from billing_cache.core.exceptions import (
    CacheBackendError,
    CacheConnectionError,
    CacheTimeoutError,
)
from billing_cache.core.interfaces.cache import TTL
from billing_cache.core.logging.logger import get_logger
from billing_cache.core.validators import normalize_ttl

logger = get_logger(__name__)

_GLOB_SPECIAL = "\\*?[]"


def _escape_glob(text: str) -> str:
    for char in _GLOB_SPECIAL:
        text = text.replace(char, f"\\{char}")
    return text


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# =============================================================================


class ConnectionManager:
    """
    Manages Redis connection lifecycle and pooling.

    Connection attempts are retried with exponential backoff and jitter;
    after REDIS_CONNECT_RETRIES failed attempts CacheConnectionError is raised.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._is_connected = False

    async def connect(self) -> redis.Redis:
        """
        Establish connection to Redis with connection pooling.

        STAGE-REDIS.2: Connection establishment

        Raises:
            CacheConnectionError: If every attempt fails
        """
        if self._is_connected and self._client:
            return self._client

        redis_settings = self._settings.redis

        @retry(
            stop=stop_after_attempt(redis_settings.REDIS_CONNECT_RETRIES),
            wait=wait_exponential_jitter(multiplier=0.1, max=2.0),
            retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                "Redis connect retry",
                stage="REDIS.2",
                attempt=retry_state.attempt_number,
                host=redis_settings.REDIS_HOST,
            ),
        )
        async def _connect_with_retry() -> redis.Redis:
            pool = ConnectionPool(
                host=redis_settings.REDIS_HOST,
                port=redis_settings.REDIS_PORT,
                db=redis_settings.REDIS_DB,
                password=redis_settings.REDIS_PASSWORD,
                max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
                socket_connect_timeout=redis_settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                socket_timeout=redis_settings.REDIS_SOCKET_TIMEOUT,
                health_check_interval=redis_settings.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )
            client = redis.Redis(connection_pool=pool)
            try:
                await client.ping()
            except RedisError:
                await pool.disconnect()
                raise
            self._pool = pool
            return client

        try:
            self._client = await _connect_with_retry()
        except RedisError as e:
            logger.error("Failed to connect to Redis", stage="REDIS.2", error=str(e))
            raise CacheConnectionError(
                message=f"Failed to connect to Redis: {e}",
                details={"host": redis_settings.REDIS_HOST, "port": redis_settings.REDIS_PORT},
            ) from e

        self._is_connected = True

        logger.info(
            "Redis connected successfully",
            stage="REDIS.2",
            host=redis_settings.REDIS_HOST,
            port=redis_settings.REDIS_PORT,
            max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
        )

        return self._client

    async def disconnect(self) -> None:
        """STAGE-REDIS.3: Connection cleanup"""
        if self._client:
            await self._client.aclose()

        if self._pool:
            await self._pool.disconnect()

        self._client = None
        self._pool = None
        self._is_connected = False

        logger.info("Redis disconnected", stage="REDIS.3")

    def attach(self, client: redis.Redis) -> None:
        """Use an already connected client (shared pool, tests)."""
        self._client = client
        self._is_connected = True

    def get_client(self) -> redis.Redis | None:
        return self._client

    def get_pool(self) -> ConnectionPool | None:
        return self._pool

    def is_connected(self) -> bool:
        return self._is_connected


# =============================================================================
# LAYER 2: OPERATION EXECUTION
# =============================================================================


class OperationExecutor:
    """
    Executes cache commands against Redis.

    Every command runs under a deadline. Failures are mapped onto the cache
    exception hierarchy:
    - deadline exceeded, socket timeout → CacheTimeoutError
    - any other RedisError → CacheBackendError
    A missing key is never an error: GET answers None.
    """

    def __init__(self, connection: ConnectionManager, key_prefix: str, default_timeout: float, flush_batch_size: int):
        self._connection = connection
        self._key_prefix = key_prefix
        self._default_timeout = default_timeout
        self._flush_batch_size = flush_batch_size

    def full_key(self, key: str) -> str:
        return f"{self._key_prefix}{KEY_SEPARATOR}{key}"

    def _client(self) -> redis.Redis:
        client = self._connection.get_client()
        if client is None or not self._connection.is_connected():
            raise CacheConnectionError("Redis client is not connected")
        return client

    async def _run(self, command: str, operation: Awaitable[Any], timeout: float | None, **fields) -> Any:
        deadline = self._default_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(operation, timeout=deadline)
        except RedisTimeoutError as e:
            logger.error(f"Redis {command} timed out", stage=f"REDIS.{command}", error=str(e), **fields)
            raise CacheTimeoutError(f"Redis {command} timed out: {e}", details={"command": command, **fields}) from e
        except asyncio.TimeoutError as e:
            logger.error(f"Redis {command} exceeded deadline", stage=f"REDIS.{command}", timeout=deadline, **fields)
            raise CacheTimeoutError(
                f"Redis {command} exceeded deadline of {deadline}s",
                details={"command": command, "timeout": deadline, **fields},
            ) from e
        except RedisError as e:
            logger.error(f"Redis {command} failed", stage=f"REDIS.{command}", error=str(e), **fields)
            raise CacheBackendError(f"Redis {command} failed: {e}", details={"command": command, **fields}) from e

    async def get(self, key: str, timeout: float | None) -> str | None:
        full_key = self.full_key(key)
        return await self._run("GET", self._client().get(full_key), timeout, key=full_key)

    async def set(self, key: str, value: str, ttl: TTL, timeout: float | None) -> None:
        delta = normalize_ttl(ttl)
        px = None if delta is None else max(1, int(delta.total_seconds() * 1000))
        full_key = self.full_key(key)
        await self._run("SET", self._client().set(full_key, value, px=px), timeout, key=full_key)

    async def delete(self, keys: tuple[str, ...], timeout: float | None) -> int:
        if not keys:
            return 0
        full_keys = [self.full_key(key) for key in keys]
        return await self._run("DEL", self._client().delete(*full_keys), timeout, keys=full_keys)

    async def incr(self, key: str, timeout: float | None) -> int:
        full_key = self.full_key(key)
        return await self._run("INCR", self._client().incr(full_key), timeout, key=full_key)

    async def zadd_nx(self, key: str, member: str, score: int, timeout: float | None) -> bool:
        full_key = self.full_key(key)
        added = await self._run(
            "ZADD", self._client().zadd(full_key, {member: score}, nx=True), timeout, key=full_key
        )
        return bool(added)

    async def zscore(self, key: str, member: str, timeout: float | None) -> float | None:
        full_key = self.full_key(key)
        return await self._run("ZSCORE", self._client().zscore(full_key, member), timeout, key=full_key)

    async def zrange_with_scores(self, key: str, timeout: float | None) -> list[tuple[str, float]]:
        full_key = self.full_key(key)
        return await self._run(
            "ZRANGE", self._client().zrange(full_key, 0, -1, withscores=True), timeout, key=full_key
        )

    async def zrem(self, key: str, member: str, timeout: float | None) -> int:
        full_key = self.full_key(key)
        return await self._run("ZREM", self._client().zrem(full_key, member), timeout, key=full_key)

    async def flush_namespace(self, name: str, timeout: float | None) -> int:
        """
        Remove every key under ``<prefix>:<name>:``.

        With an explicit timeout the whole flush shares one deadline;
        otherwise each SCAN/UNLINK round-trip gets the default deadline.
        """
        if timeout is not None:
            return await self._run("FLUSH", self._flush(name, None), timeout, namespace=name)
        return await self._flush(name, self._default_timeout)

    async def _flush(self, name: str, step_timeout: float | None) -> int:
        client = self._client()
        pattern = _escape_glob(self.full_key(f"{name}{KEY_SEPARATOR}")) + "*"
        removed = 0
        cursor = 0

        while True:
            scan = client.scan(cursor=cursor, match=pattern, count=self._flush_batch_size)
            if step_timeout is None:
                cursor, keys = await scan
            else:
                cursor, keys = await self._run("SCAN", scan, step_timeout, namespace=name)

            if keys:
                unlink = client.unlink(*keys)
                if step_timeout is None:
                    removed += await unlink
                else:
                    removed += await self._run("UNLINK", unlink, step_timeout, namespace=name)

            if int(cursor) == 0:
                return removed


# =============================================================================
# LAYER 3: HEALTH MONITORING
# =============================================================================


class HealthMonitor:
    """Ping latency and connection pool utilization."""

    def __init__(self, connection: ConnectionManager, settings: Settings):
        self._connection = connection
        self._settings = settings

    async def health_check(self) -> dict[str, Any]:
        health = {
            "status": "healthy",
            "connected": self._connection.is_connected(),
            "host": self._settings.redis.REDIS_HOST,
            "port": self._settings.redis.REDIS_PORT,
            "ping_latency_ms": None,
            "pool_utilization_pct": 0,
        }

        client = self._connection.get_client()
        if client is None:
            health["status"] = "unhealthy"
            health["error"] = "not connected"
            return health

        try:
            start = time.perf_counter()
            await client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)

            pool = self._connection.get_pool()
            if pool and hasattr(pool, "_available_connections") and pool.max_connections:
                available = len(pool._available_connections)
                in_use = len(getattr(pool, "_in_use_connections", ()))
                health["pool_utilization_pct"] = round(100.0 * in_use / pool.max_connections, 1)
                health["pool_available"] = available
        except RedisError as e:
            health["status"] = "unhealthy"
            health["error"] = str(e)

        return health


# =============================================================================
# PUBLIC API
# =============================================================================


class RedisClient:
    """
    Redis-backed KeyValueStore.

    Usage:
        client = RedisClient(settings)
        await client.connect()

        await client.set("v1:price_group:id:5f...", blob)
        blob = await client.get("v1:price_group:id:5f...")
        await client.flush_namespace("v1")

        await client.disconnect()
    """

    def __init__(self, settings: Settings | None = None, client: redis.Redis | None = None):
        self.settings = settings or get_settings()
        cache_settings = self.settings.cache
        self.key_prefix = cache_settings.CACHE_KEY_PREFIX

        self._connection = ConnectionManager(self.settings)
        self._executor = OperationExecutor(
            self._connection,
            key_prefix=self.key_prefix,
            default_timeout=cache_settings.CACHE_OPERATION_TIMEOUT,
            flush_batch_size=cache_settings.CACHE_FLUSH_BATCH_SIZE,
        )
        self._health = HealthMonitor(self._connection, self.settings)

        if client is not None:
            self._connection.attach(client)

        logger.info(
            "Redis client initialized",
            stage=Stage.REDIS.value,
            host=self.settings.redis.REDIS_HOST,
            port=self.settings.redis.REDIS_PORT,
            key_prefix=self.key_prefix,
        )

    async def connect(self) -> None:
        await self._connection.connect()

    async def disconnect(self) -> None:
        await self._connection.disconnect()

    async def ping(self) -> bool:
        client = self._connection.get_client()
        if client is None:
            return False
        try:
            return bool(await client.ping())
        except RedisError:
            return False

    @property
    def is_connected(self) -> bool:
        return self._connection.is_connected()

    async def get(self, key: str, *, timeout: float | None = None) -> str | None:
        return await self._executor.get(key, timeout)

    async def set(self, key: str, value: str, ttl: TTL = None, *, timeout: float | None = None) -> None:
        await self._executor.set(key, value, ttl, timeout)

    async def delete(self, *keys: str, timeout: float | None = None) -> int:
        return await self._executor.delete(keys, timeout)

    async def flush_namespace(self, name: str, *, timeout: float | None = None) -> int:
        return await self._executor.flush_namespace(name, timeout)

    # =========================================================================
    # Sorted-set and counter operations (version ledger)
    # =========================================================================

    async def incr(self, key: str, *, timeout: float | None = None) -> int:
        return await self._executor.incr(key, timeout)

    async def zadd_nx(self, key: str, member: str, score: int, *, timeout: float | None = None) -> bool:
        """Add ``member`` unless present. Returns True if it was added."""
        return await self._executor.zadd_nx(key, member, score, timeout)

    async def zscore(self, key: str, member: str, *, timeout: float | None = None) -> float | None:
        return await self._executor.zscore(key, member, timeout)

    async def zrange_with_scores(self, key: str, *, timeout: float | None = None) -> list[tuple[str, float]]:
        """All members, lowest score first."""
        return await self._executor.zrange_with_scores(key, timeout)

    async def zrem(self, key: str, member: str, *, timeout: float | None = None) -> int:
        return await self._executor.zrem(key, member, timeout)

    async def health_check(self) -> dict[str, Any]:
        return await self._health.health_check()
