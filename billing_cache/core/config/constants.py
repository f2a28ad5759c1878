#!/usr/bin/env python3
"""
System Constants and Enumerations

This module defines constants and enumerations used across the billing
cache layer.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for key layout and log stage identifiers
- Type-safe enums for state management

Author: Billing Platform Team
Date: 2025-12-05
"""

import re
from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Cache operation stages.

    Every log line emitted by the cache layer carries one of these in its
    ``stage`` field so that a single request can be followed across the
    adapter, the namespace and the backend.
    """

    INITIALIZATION = "CACHE.INIT"
    GET = "CACHE.GET"
    SET = "CACHE.SET"
    DELETE = "CACHE.DEL"
    FLUSH = "CACHE.FLUSH"
    REGISTER = "CACHE.REGISTER"
    EVICT = "CACHE.EVICT"
    LOAD = "CACHE.LOAD"
    INVALIDATE = "CACHE.INVALIDATE"
    REDIS = "REDIS"
    STORE = "STORE"


# ============================================================================
# Namespace States
# ============================================================================


class NamespaceState(str, Enum):
    """
    Lifecycle of a cache namespace.

    LIVE: Reads and writes go to the backend
    EVICTING: Flush in progress, writes are skipped
    EVICTED: Flushed and forgotten, reads are misses
    """

    LIVE = "live"
    EVICTING = "evicting"
    EVICTED = "evicted"


# ============================================================================
# Invalidation Failure Policies
# ============================================================================


class InvalidationFailurePolicy(str, Enum):
    """
    What a committed write reports when its cache bookkeeping fails.

    RAISE: Raise CacheInvalidationError (committed=True)
    LOG: Log the failed keys and return the committed value
    """

    RAISE = "raise"
    LOG = "log"


# ============================================================================
# Key Layout
# ============================================================================

# <CACHE_KEY_PREFIX>:<namespace>:<family>:<dimension>:<value>...
KEY_SEPARATOR = ":"

NAMESPACE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")

# ============================================================================
# Durable Store
# ============================================================================

OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"

# Log field names shared with the repository layer
LOG_FIELD_COLLECTION = "collection"
LOG_FIELD_OPERATION = "operation"
LOG_FIELD_QUERY = "query"
