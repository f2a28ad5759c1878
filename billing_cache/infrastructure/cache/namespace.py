"""
Cache Namespace

One independently flushable partition of the key-value store. Every key
written through a namespace is stored as ``<name>:<key>``, so ``clean()`` can
remove the whole partition with one ``flush_namespace`` call.

Namespaces are created and owned by the VersionRegistry; repositories only
ever receive one.

State handling:
- LIVE: reads and writes reach the backend
- EVICTING: the flush is running; writes are skipped so the flush cannot
  race with a writer and leave a key behind under the dying prefix
- EVICTED: reads are misses without a backend round-trip, writes are skipped

With a ledger shared between processes another instance may evict a
namespace by name. Each write therefore first asks the ledger whether the
name is still recorded; if not, the namespace turns EVICTED locally and the
write is skipped.
"""

from collections.abc import Awaitable, Callable

from billing_cache.core.config.constants import KEY_SEPARATOR, NamespaceState, Stage
from billing_cache.core.interfaces.cache import TTL, KeyValueStore
from billing_cache.core.logging.logger import get_logger
from billing_cache.core.validators import validate_namespace_name
from billing_cache.infrastructure.cache.keys import KeyLike, render_key

logger = get_logger(__name__)


class CacheNamespace:
    """Prefix-scoped view of a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        name: str,
        sequence: int,
        is_recorded: Callable[[str], Awaitable[bool]] | None = None,
    ):
        self._store = store
        self._is_recorded = is_recorded
        self.name = validate_namespace_name(name)
        self.sequence = sequence
        self.state = NamespaceState.LIVE

    @property
    def is_live(self) -> bool:
        return self.state is NamespaceState.LIVE

    def qualify(self, key: KeyLike) -> str:
        """Namespace-qualified form of ``key`` (without the store's root prefix)."""
        return f"{self.name}{KEY_SEPARATOR}{render_key(key)}"

    async def get(self, key: KeyLike, *, timeout: float | None = None) -> str | None:
        """
        Raw blob for ``key`` or None when absent.

        Raises:
            CacheBackendError: If the backend cannot answer
        """
        if self.state is NamespaceState.EVICTED:
            return None
        return await self._store.get(self.qualify(key), timeout=timeout)

    async def set(self, key: KeyLike, value: str, ttl: TTL = None, *, timeout: float | None = None) -> bool:
        """
        Store ``value``. Returns False when the write was skipped because the
        namespace is being or has been evicted.
        """
        if self.is_live and self._is_recorded is not None and not await self._is_recorded(self.name):
            self.state = NamespaceState.EVICTED
            logger.info(
                "Namespace evicted by another process",
                stage=Stage.EVICT.value,
                namespace=self.name,
                sequence=self.sequence,
            )
        if not self.is_live:
            logger.debug(
                "Write skipped on non-live namespace",
                stage=Stage.SET.value,
                namespace=self.name,
                state=self.state.value,
                key=render_key(key),
            )
            return False
        await self._store.set(self.qualify(key), value, ttl, timeout=timeout)
        return True

    async def delete(self, *keys: KeyLike, timeout: float | None = None) -> int:
        if not keys or self.state is NamespaceState.EVICTED:
            return 0
        return await self._store.delete(*(self.qualify(key) for key in keys), timeout=timeout)

    async def clean(self, *, timeout: float | None = None) -> int:
        """Remove every key of this namespace. Returns the number removed."""
        removed = await self._store.flush_namespace(self.name, timeout=timeout)
        logger.info("Namespace flushed", stage=Stage.FLUSH.value, namespace=self.name, removed=removed)
        return removed

    def __repr__(self) -> str:
        return f"CacheNamespace(name={self.name!r}, sequence={self.sequence}, state={self.state.value!r})"
