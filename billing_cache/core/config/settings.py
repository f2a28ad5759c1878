#!/usr/bin/env python3
"""
Cache Configuration

pydantic-settings sections for the Redis connection, the versioned cache,
logging and service identity. Values come from the environment or a
``.env`` file and are validated once, when Settings is created; a bad
version limit or failure policy stops the service at startup.

Author: Billing Platform Team
Date: 2025-12-05
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """
    Redis configuration for the cache backend.

    STAGE-0.1: Redis connection configuration
    """

    REDIS_HOST: str = Field(default="localhost", description="Cache Redis host")
    REDIS_PORT: int = Field(default=6379, description="Cache Redis port")
    REDIS_DB: int = Field(default=0, description="Logical database holding the cache")
    REDIS_PASSWORD: str | None = Field(default=None, description="AUTH password, None when the server has none")

    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Pool size shared by all cache calls")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket read/write timeout (s)")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="TCP connect timeout (s)")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Idle seconds before the pool re-checks a connection")
    REDIS_CONNECT_RETRIES: int = Field(default=3, ge=1, description="Connection attempts before giving up")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Versioned cache configuration.

    STAGE-2: Cache namespace and invalidation configuration

    CACHE_DEFAULT_TTL is 0 for almost every entity family: entries live until
    they are invalidated explicitly or their namespace is evicted.
    """

    CACHE_KEY_PREFIX: str = Field(default="cache", description="Root prefix for every cache key")
    CACHE_VERSION: str = Field(default="v1", description="Namespace registered at startup")
    CACHE_VERSION_LIMIT: int = Field(default=2, ge=1, description="Live namespaces kept after eviction")
    CACHE_DEFAULT_TTL: float = Field(default=0, ge=0, description="Default entry TTL in seconds (0 = none)")
    CACHE_OPERATION_TIMEOUT: float = Field(default=2.0, gt=0, description="Deadline for one backend call")
    CACHE_FLUSH_BATCH_SIZE: int = Field(default=500, ge=1, description="Keys per SCAN/UNLINK batch")
    CACHE_INVALIDATION_FAILURE_POLICY: Literal["raise", "log"] = Field(
        default="raise",
        description="What a committed write does when cache invalidation fails",
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """General application settings."""

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment"
    )
    APP_NAME: str = Field(default="Billing Cache", description="Service name in logs and health output")
    APP_VERSION: str = Field(default="1.0.0", description="Service version in health output")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(RedisSettings, CacheSettings, LoggingSettings, ApplicationSettings):
    """
    Every configuration section in one object, read from the environment
    and ``.env``.

    STAGE-0: Centralized configuration initialization

    Fields are flat (``settings.CACHE_VERSION_LIMIT``); the section
    properties give narrower views to components that need only one part.

    Usage:
        from billing_cache.core.config import get_settings

        settings = get_settings()
        limit = settings.cache.CACHE_VERSION_LIMIT
        host = settings.redis.REDIS_HOST
    """

    def _section(self, section_cls: type[BaseSettings]) -> BaseSettings:
        # Fields were validated on this instance; the view must not re-read the environment.
        return section_cls.model_construct(**self.model_dump(include=set(section_cls.model_fields)))

    @property
    def redis(self) -> RedisSettings:
        return self._section(RedisSettings)

    @property
    def cache(self) -> CacheSettings:
        return self._section(CacheSettings)

    @property
    def logging(self) -> LoggingSettings:
        return self._section(LoggingSettings)

    @property
    def app(self) -> ApplicationSettings:
        return self._section(ApplicationSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (lazily created)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    STAGE-0.3: Settings initialization

    Settings are process configuration, not cache state: the cache store and
    the version registry are built from them and injected explicitly.
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
