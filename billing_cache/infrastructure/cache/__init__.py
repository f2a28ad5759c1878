"""
Cache Module

Versioned cache-aside layer: namespaced key-value access, a bounded
registry of cache versions and the adapter repositories talk to.
"""

from .cache_aside import CacheAsideAdapter, CacheLookup, CacheObserver
from .factory import CacheContext, build_adapter, close_cache, init_cache
from .keys import CacheKey, InvalidationGroup, KeyLike, KeyTemplate, render_key
from .memory_store import InMemoryKeyValueStore
from .namespace import CacheNamespace
from .redis_client import RedisClient
from .serialization import CacheSerializer
from .version_ledger import InMemoryVersionLedger, RedisVersionLedger, VersionLedger
from .version_registry import VersionRegistry

__all__ = [
    "CacheAsideAdapter",
    "CacheLookup",
    "CacheObserver",
    "CacheContext",
    "build_adapter",
    "init_cache",
    "close_cache",
    "CacheKey",
    "KeyTemplate",
    "KeyLike",
    "InvalidationGroup",
    "render_key",
    "InMemoryKeyValueStore",
    "CacheNamespace",
    "RedisClient",
    "CacheSerializer",
    "VersionLedger",
    "InMemoryVersionLedger",
    "RedisVersionLedger",
    "VersionRegistry",
]
