#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
resilient RPC client. Settings only supply defaults: every component can also
be constructed with explicit arguments.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with override mechanisms
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chainrpc.core.config.constants import (
    CACHE_MAX_SIZE,
    CACHE_TTL_BALANCE,
    CACHE_TTL_BATCH_READ,
    CACHE_TTL_CHAIN_HEAD,
    CACHE_TTL_READ_STATE,
    DEFAULT_RPC_ENDPOINTS,
    ENDPOINT_FAILURE_THRESHOLD,
    ENDPOINT_FORCE_RESET_THRESHOLD,
    HEALTH_CHECK_INTERVAL,
    HEALTH_CHECK_TIMEOUT,
    MAX_RETRIES,
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
    SCHEDULER_BURST_LIMIT,
    SCHEDULER_DRAIN_INTERVAL,
    SCHEDULER_REQUESTS_PER_SECOND,
    TRANSPORT_MAX_CONNECTIONS,
    TRANSPORT_TIMEOUT,
)


class EndpointSettings(BaseSettings):
    """
    RPC endpoint configuration.

    RPC_PRIMARY_URL, when set, is placed ahead of RPC_ENDPOINTS so a
    dedicated node is preferred over the public pool.
    """

    RPC_ENDPOINTS: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RPC_ENDPOINTS),
        description="Ordered list of JSON-RPC endpoint URLs",
    )
    RPC_PRIMARY_URL: str | None = Field(default=None, description="Preferred endpoint URL")
    RPC_TIMEOUT: float = Field(default=TRANSPORT_TIMEOUT, gt=0, description="Transport timeout in seconds")
    RPC_MAX_CONNECTIONS: int = Field(
        default=TRANSPORT_MAX_CONNECTIONS, ge=1, description="HTTP connections per endpoint"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    def resolved_endpoints(self) -> list[str]:
        """Return endpoint URLs with the primary first and duplicates removed."""
        urls = [self.RPC_PRIMARY_URL] if self.RPC_PRIMARY_URL else []
        urls.extend(self.RPC_ENDPOINTS)
        seen: set[str] = set()
        ordered = []
        for url in urls:
            if url not in seen:
                seen.add(url)
                ordered.append(url)
        return ordered


class SchedulerSettings(BaseSettings):
    """Request queue cadence and rate limits."""

    SCHEDULER_DRAIN_INTERVAL: float = Field(default=SCHEDULER_DRAIN_INTERVAL, gt=0)
    SCHEDULER_REQUESTS_PER_SECOND: float = Field(default=SCHEDULER_REQUESTS_PER_SECOND, gt=0)
    SCHEDULER_BURST_LIMIT: int = Field(default=SCHEDULER_BURST_LIMIT, ge=1)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RetrySettings(BaseSettings):
    """Exponential backoff policy for a single queued request."""

    RETRY_MAX_RETRIES: int = Field(default=MAX_RETRIES, ge=0)
    RETRY_BASE_DELAY: float = Field(default=RETRY_BASE_DELAY, ge=0)
    RETRY_MAX_DELAY: float = Field(default=RETRY_MAX_DELAY, ge=0)
    RETRY_BACKOFF_MULTIPLIER: float = Field(default=RETRY_BACKOFF_MULTIPLIER, ge=1)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class HealthSettings(BaseSettings):
    """Endpoint health probing and thresholds."""

    HEALTH_CHECK_INTERVAL: float = Field(default=HEALTH_CHECK_INTERVAL, gt=0)
    HEALTH_CHECK_TIMEOUT: float = Field(default=HEALTH_CHECK_TIMEOUT, gt=0)
    HEALTH_FAILURE_THRESHOLD: int = Field(default=ENDPOINT_FAILURE_THRESHOLD, ge=1)
    HEALTH_FORCE_RESET_THRESHOLD: int = Field(default=ENDPOINT_FORCE_RESET_THRESHOLD, ge=0)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Response cache configuration.

    Different TTLs for different operation kinds; None disables caching
    for that kind unless the caller passes an explicit ttl.
    """

    CACHE_MAX_SIZE: int = Field(default=CACHE_MAX_SIZE, ge=1, description="Size that triggers a sweep")
    CACHE_TTL_CHAIN_HEAD: float | None = Field(default=CACHE_TTL_CHAIN_HEAD)
    CACHE_TTL_READ_STATE: float | None = Field(default=CACHE_TTL_READ_STATE)
    CACHE_TTL_BATCH_READ: float | None = Field(default=CACHE_TTL_BATCH_READ)
    CACHE_TTL_BALANCE: float | None = Field(default=CACHE_TTL_BALANCE)
    CACHE_TTL_TRANSACTION: float | None = Field(default=None)
    CACHE_TTL_TRANSACTION_RECEIPT: float | None = Field(default=None)
    CACHE_TTL_LOGS: float | None = Field(default=None)
    CACHE_TTL_BLOCK: float | None = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
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


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from chainrpc.core.config import get_settings

        settings = get_settings()
        urls = settings.endpoints.resolved_endpoints()
        ttl = settings.cache.CACHE_TTL_BALANCE
    """

    # Endpoint settings
    RPC_ENDPOINTS: list[str] = Field(default_factory=lambda: list(DEFAULT_RPC_ENDPOINTS))
    RPC_PRIMARY_URL: str | None = Field(default=None)
    RPC_TIMEOUT: float = Field(default=TRANSPORT_TIMEOUT, gt=0)
    RPC_MAX_CONNECTIONS: int = Field(default=TRANSPORT_MAX_CONNECTIONS, ge=1)

    # Scheduler settings
    SCHEDULER_DRAIN_INTERVAL: float = Field(default=SCHEDULER_DRAIN_INTERVAL, gt=0)
    SCHEDULER_REQUESTS_PER_SECOND: float = Field(default=SCHEDULER_REQUESTS_PER_SECOND, gt=0)
    SCHEDULER_BURST_LIMIT: int = Field(default=SCHEDULER_BURST_LIMIT, ge=1)

    # Retry settings
    RETRY_MAX_RETRIES: int = Field(default=MAX_RETRIES, ge=0)
    RETRY_BASE_DELAY: float = Field(default=RETRY_BASE_DELAY, ge=0)
    RETRY_MAX_DELAY: float = Field(default=RETRY_MAX_DELAY, ge=0)
    RETRY_BACKOFF_MULTIPLIER: float = Field(default=RETRY_BACKOFF_MULTIPLIER, ge=1)

    # Health settings
    HEALTH_CHECK_INTERVAL: float = Field(default=HEALTH_CHECK_INTERVAL, gt=0)
    HEALTH_CHECK_TIMEOUT: float = Field(default=HEALTH_CHECK_TIMEOUT, gt=0)
    HEALTH_FAILURE_THRESHOLD: int = Field(default=ENDPOINT_FAILURE_THRESHOLD, ge=1)
    HEALTH_FORCE_RESET_THRESHOLD: int = Field(default=ENDPOINT_FORCE_RESET_THRESHOLD, ge=0)

    # Cache settings
    CACHE_MAX_SIZE: int = Field(default=CACHE_MAX_SIZE, ge=1)
    CACHE_TTL_CHAIN_HEAD: float | None = Field(default=CACHE_TTL_CHAIN_HEAD)
    CACHE_TTL_READ_STATE: float | None = Field(default=CACHE_TTL_READ_STATE)
    CACHE_TTL_BATCH_READ: float | None = Field(default=CACHE_TTL_BATCH_READ)
    CACHE_TTL_BALANCE: float | None = Field(default=CACHE_TTL_BALANCE)
    CACHE_TTL_TRANSACTION: float | None = Field(default=None)
    CACHE_TTL_TRANSACTION_RECEIPT: float | None = Field(default=None)
    CACHE_TTL_LOGS: float | None = Field(default=None)
    CACHE_TTL_BLOCK: float | None = Field(default=None)

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Nested configuration objects
    @property
    def endpoints(self) -> 'EndpointSettings':
        """Get endpoint settings."""
        return EndpointSettings(
            RPC_ENDPOINTS=self.RPC_ENDPOINTS,
            RPC_PRIMARY_URL=self.RPC_PRIMARY_URL,
            RPC_TIMEOUT=self.RPC_TIMEOUT,
            RPC_MAX_CONNECTIONS=self.RPC_MAX_CONNECTIONS,
        )

    @property
    def scheduler(self) -> 'SchedulerSettings':
        """Get scheduler settings."""
        return SchedulerSettings(
            SCHEDULER_DRAIN_INTERVAL=self.SCHEDULER_DRAIN_INTERVAL,
            SCHEDULER_REQUESTS_PER_SECOND=self.SCHEDULER_REQUESTS_PER_SECOND,
            SCHEDULER_BURST_LIMIT=self.SCHEDULER_BURST_LIMIT,
        )

    @property
    def retry(self) -> 'RetrySettings':
        """Get retry settings."""
        return RetrySettings(
            RETRY_MAX_RETRIES=self.RETRY_MAX_RETRIES,
            RETRY_BASE_DELAY=self.RETRY_BASE_DELAY,
            RETRY_MAX_DELAY=self.RETRY_MAX_DELAY,
            RETRY_BACKOFF_MULTIPLIER=self.RETRY_BACKOFF_MULTIPLIER,
        )

    @property
    def health(self) -> 'HealthSettings':
        """Get health settings."""
        return HealthSettings(
            HEALTH_CHECK_INTERVAL=self.HEALTH_CHECK_INTERVAL,
            HEALTH_CHECK_TIMEOUT=self.HEALTH_CHECK_TIMEOUT,
            HEALTH_FAILURE_THRESHOLD=self.HEALTH_FAILURE_THRESHOLD,
            HEALTH_FORCE_RESET_THRESHOLD=self.HEALTH_FORCE_RESET_THRESHOLD,
        )

    @property
    def cache(self) -> 'CacheSettings':
        """Get cache settings."""
        return CacheSettings(
            CACHE_MAX_SIZE=self.CACHE_MAX_SIZE,
            CACHE_TTL_CHAIN_HEAD=self.CACHE_TTL_CHAIN_HEAD,
            CACHE_TTL_READ_STATE=self.CACHE_TTL_READ_STATE,
            CACHE_TTL_BATCH_READ=self.CACHE_TTL_BATCH_READ,
            CACHE_TTL_BALANCE=self.CACHE_TTL_BALANCE,
            CACHE_TTL_TRANSACTION=self.CACHE_TTL_TRANSACTION,
            CACHE_TTL_TRANSACTION_RECEIPT=self.CACHE_TTL_TRANSACTION_RECEIPT,
            CACHE_TTL_LOGS=self.CACHE_TTL_LOGS,
            CACHE_TTL_BLOCK=self.CACHE_TTL_BLOCK,
        )

    @property
    def logging(self) -> 'LoggingSettings':
        """Get logging settings."""
        return LoggingSettings(
            LOG_LEVEL=self.LOG_LEVEL,
            LOG_FORMAT=self.LOG_FORMAT,
        )

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
    Get the shared settings instance.

    Returns:
        Settings: Settings loaded from the environment on first access
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
