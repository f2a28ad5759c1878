"""
Core Interfaces

Protocols for the cache backend and the durable store.
"""

from billing_cache.core.interfaces.cache import TTL, KeyValueStore
from billing_cache.core.interfaces.store import Document, DurableStore, Filter

__all__ = [
    "TTL",
    "KeyValueStore",
    "Document",
    "DurableStore",
    "Filter",
]
