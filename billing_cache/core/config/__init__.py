"""
Configuration Module

Centralized, type-safe configuration for the billing cache layer.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Stage identifiers, namespace states, key layout

Usage:
------
```python
from billing_cache.core.config import get_settings
from billing_cache.core.config.constants import Stage

settings = get_settings()
limit = settings.cache.CACHE_VERSION_LIMIT
```
"""

from .constants import (
    KEY_SEPARATOR,
    InvalidationFailurePolicy,
    NamespaceState,
    Stage,
)
from .settings import (
    ApplicationSettings,
    CacheSettings,
    LoggingSettings,
    RedisSettings,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "KEY_SEPARATOR",
    "InvalidationFailurePolicy",
    "NamespaceState",
    "Stage",
    "ApplicationSettings",
    "CacheSettings",
    "LoggingSettings",
    "RedisSettings",
    "Settings",
    "get_settings",
    "reload_settings",
]
