#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
manifest gateway. All configuration is centralized here so the cache tiers,
the rate limiter, the CORS gatekeeper and the webhook endpoints agree on the
same values.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Grouped read-only views per concern (settings.cache, settings.rate_limit, ...)
- Easy testing: construct Settings(...) directly or call reload_settings()

Author: System Architect
Date: 2025-12-05
"""

from typing import Annotated, Literal

import orjson
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from manifest_gateway.core.config.constants import DEFAULT_MANIFEST_PATHS, DEFAULT_MANIFEST_TYPES

DEFAULT_ALLOWED_ORIGINS = [
    "https://mcc-cal.com",
    "https://*.squarespace.com",
    "https://api.mcc-cal.com",
    "http://localhost:3000",
    "http://localhost:3001",
]


def _split_csv(value):
    """Accept either a JSON-style list or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            return [str(item).strip() for item in orjson.loads(stripped) if str(item).strip()]
        return [part.strip() for part in stripped.split(",") if part.strip()]
    return list(value)


class RedisSettings(BaseSettings):
    """
    Redis configuration for the persistent key-value tier.

    STAGE-0.1: Redis connection configuration

    REDIS_URL left unset means the gateway runs on the in-process fallback
    store only. This is the normal mode for local development and tests.
    """

    REDIS_URL: str | None = Field(default=None, description="Redis connection URL")
    REDIS_SOCKET_TIMEOUT: float = Field(default=2.0, ge=0.1, description="Socket timeout (seconds)")
    REDIS_CONNECT_ATTEMPTS: int = Field(default=3, ge=1, le=10, description="Startup connect attempts")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class UpstreamSettings(BaseSettings):
    """
    Upstream manifest source configuration.

    MANIFEST_PATHS maps a manifest type to its path below MANIFEST_BASE_URL
    (without the .json suffix).
    """

    MANIFEST_BASE_URL: str | None = Field(default=None, description="Base URL of the manifest origin")
    MANIFEST_TYPES: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_MANIFEST_TYPES)
    )
    MANIFEST_PATHS: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_MANIFEST_PATHS))
    UPSTREAM_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, le=120)

    @field_validator("MANIFEST_TYPES", mode="before")
    @classmethod
    def split_types(cls, v):
        return _split_csv(v)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RateLimitSettings(BaseSettings):
    """
    Rate limiting configuration.

    STAGE-3.0: Window counter limits applied to manifest reads only.
    """

    RATE_LIMIT_REQUESTS: int = Field(default=100, ge=1, description="Requests allowed per window")
    RATE_LIMIT_WINDOW_MS: int = Field(default=60_000, ge=1000, description="Window length (ms)")
    TRUST_PROXY_HEADERS: bool = Field(default=True, description="Read client IP from proxy headers")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Cache configuration for both tiers.

    STAGE-2.0: Freshness window and stale-while-revalidate window
    """

    CACHE_TTL_SECONDS: int = Field(default=600, ge=1, description="Fresh lifetime (seconds)")
    CACHE_STALE_WHILE_REVALIDATE_SECONDS: int = Field(
        default=3600, ge=0, description="Window during which stale content may be served"
    )
    CACHE_MEMORY_MAX_ENTRIES: int = Field(default=1000, ge=1, description="In-process store capacity")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """General application and HTTP surface configuration."""

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(default="development")
    APP_NAME: str = Field(default="manifest-gateway")
    APP_VERSION: str = Field(default="1.0.0")
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000, ge=1, le=65535)
    API_BASE_PATH: str = Field(default="/api/v1")
    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS)
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    WEBHOOK_SECRET: str | None = Field(default=None)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v):
        return _split_csv(v)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Variables are flat (one environment variable per field); the grouped
    properties below hand out the per-concern views used by each component.

    Usage:
        settings = get_settings()
        ttl = settings.cache.CACHE_TTL_SECONDS
    """

    # Application
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    APP_NAME: str = "manifest-gateway"
    APP_VERSION: str = "1.0.0"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(default=8000, ge=1, le=65535)
    API_BASE_PATH: str = "/api/v1"

    # CORS and webhook authentication
    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS)
    )
    CORS_ALLOW_CREDENTIALS: bool = True
    WEBHOOK_SECRET: str | None = None

    # Redis
    REDIS_URL: str | None = None
    REDIS_SOCKET_TIMEOUT: float = Field(default=2.0, ge=0.1)
    REDIS_CONNECT_ATTEMPTS: int = Field(default=3, ge=1, le=10)

    # Upstream
    MANIFEST_BASE_URL: str | None = None
    MANIFEST_TYPES: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_MANIFEST_TYPES)
    )
    MANIFEST_PATHS: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_MANIFEST_PATHS))
    UPSTREAM_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, le=120)

    # Cache
    CACHE_TTL_SECONDS: int = Field(default=600, ge=1)
    CACHE_STALE_WHILE_REVALIDATE_SECONDS: int = Field(default=3600, ge=0)
    CACHE_MEMORY_MAX_ENTRIES: int = Field(default=1000, ge=1)

    # Rate limiting
    RATE_LIMIT_REQUESTS: int = Field(default=100, ge=1)
    RATE_LIMIT_WINDOW_MS: int = Field(default=60_000, ge=1000)
    TRUST_PROXY_HEADERS: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    @field_validator("ALLOWED_ORIGINS", "MANIFEST_TYPES", mode="before")
    @classmethod
    def split_comma_separated(cls, v):
        return _split_csv(v)

    @field_validator("MANIFEST_TYPES")
    @classmethod
    def normalize_manifest_types(cls, v):
        seen: list[str] = []
        for item in v:
            name = item.lower()
            if name not in seen:
                seen.append(name)
        return seen

    @field_validator("API_BASE_PATH")
    @classmethod
    def normalize_base_path(cls, v):
        v = v.strip()
        if not v or v == "/":
            return ""
        return "/" + v.strip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def redis(self) -> RedisSettings:
        """Get Redis settings."""
        return RedisSettings(
            REDIS_URL=self.REDIS_URL,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_CONNECT_ATTEMPTS=self.REDIS_CONNECT_ATTEMPTS,
        )

    @property
    def upstream(self) -> UpstreamSettings:
        """Get upstream settings."""
        return UpstreamSettings(
            MANIFEST_BASE_URL=self.MANIFEST_BASE_URL,
            MANIFEST_TYPES=self.MANIFEST_TYPES,
            MANIFEST_PATHS=self.MANIFEST_PATHS,
            UPSTREAM_TIMEOUT_SECONDS=self.UPSTREAM_TIMEOUT_SECONDS,
        )

    @property
    def rate_limit(self) -> RateLimitSettings:
        """Get rate limit settings."""
        return RateLimitSettings(
            RATE_LIMIT_REQUESTS=self.RATE_LIMIT_REQUESTS,
            RATE_LIMIT_WINDOW_MS=self.RATE_LIMIT_WINDOW_MS,
            TRUST_PROXY_HEADERS=self.TRUST_PROXY_HEADERS,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_TTL_SECONDS=self.CACHE_TTL_SECONDS,
            CACHE_STALE_WHILE_REVALIDATE_SECONDS=self.CACHE_STALE_WHILE_REVALIDATE_SECONDS,
            CACHE_MEMORY_MAX_ENTRIES=self.CACHE_MEMORY_MAX_ENTRIES,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            API_BASE_PATH=self.API_BASE_PATH,
            ALLOWED_ORIGINS=self.ALLOWED_ORIGINS,
            CORS_ALLOW_CREDENTIALS=self.CORS_ALLOW_CREDENTIALS,
            WEBHOOK_SECRET=self.WEBHOOK_SECRET,
        )

    def startup_warnings(self) -> list[str]:
        """
        Collect configuration problems worth reporting at startup.

        Nothing here is fatal: a missing base URL surfaces as a 500 on the
        first fetch and a missing secret makes the webhooks refuse requests
        in production.
        """
        warnings = []
        if not self.MANIFEST_BASE_URL:
            warnings.append("MANIFEST_BASE_URL is not set; manifest fetches will fail")
        if not self.WEBHOOK_SECRET:
            if self.is_production:
                warnings.append("WEBHOOK_SECRET is not set; webhooks will reject all requests")
            else:
                warnings.append("WEBHOOK_SECRET is not set; webhooks are unauthenticated")
        if not self.ALLOWED_ORIGINS:
            warnings.append("ALLOWED_ORIGINS is empty; no browser origin will be admitted")
        if not self.REDIS_URL:
            warnings.append("REDIS_URL is not set; using the in-process store only")
        return warnings

    def safe_summary(self) -> dict:
        """Configuration summary with secrets removed, for the startup log."""
        return {
            "environment": self.ENVIRONMENT,
            "api_base_path": self.API_BASE_PATH or "/",
            "manifest_base_url": self.MANIFEST_BASE_URL,
            "manifest_types": self.MANIFEST_TYPES,
            "allowed_origins": self.ALLOWED_ORIGINS,
            "redis_configured": bool(self.REDIS_URL),
            "webhook_secret_configured": bool(self.WEBHOOK_SECRET),
            "cache_ttl_seconds": self.CACHE_TTL_SECONDS,
            "stale_while_revalidate_seconds": self.CACHE_STALE_WHILE_REVALIDATE_SECONDS,
            "rate_limit": f"{self.RATE_LIMIT_REQUESTS}/{self.RATE_LIMIT_WINDOW_MS}ms",
        }

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
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
