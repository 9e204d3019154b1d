"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:3001"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])
    expose_headers: list[str] = Field(
        default=["Authorization", "Retry-After", "X-Request-ID"]
    )


class ThrottleRuleConfig(BaseModel):
    """Limit and window for a single throttle strategy."""

    limit: int = Field(ge=1, description="Requests allowed per window")
    period_seconds: int = Field(ge=1, description="Window length in seconds")


def default_throttle_rules() -> dict[str, ThrottleRuleConfig]:
    return {
        "req/ip": ThrottleRuleConfig(limit=100, period_seconds=60),
        "logins/ip": ThrottleRuleConfig(limit=5, period_seconds=20),
        "logins/email": ThrottleRuleConfig(limit=5, period_seconds=60),
        "signups/ip": ThrottleRuleConfig(limit=3, period_seconds=60),
        "api/user": ThrottleRuleConfig(limit=300, period_seconds=60),
    }


class RateLimiterConfig(BaseModel):
    """Rate limiter configuration model."""

    enabled: bool = Field(default=True, description="Enable rate limiting")
    trust_forwarded_for: bool = Field(
        default=False,
        description="Use the first X-Forwarded-For hop as the client IP",
    )
    safelist_ips: list[str] = Field(
        default_factory=lambda: ["127.0.0.1", "::1"],
        description="Addresses admitted unconditionally outside production",
    )
    throttles: dict[str, ThrottleRuleConfig] = Field(
        default_factory=default_throttle_rules,
        description="Per-strategy limit overrides keyed by strategy name",
    )


class CacheConfig(BaseModel):
    """Response cache configuration model."""

    enabled: bool = Field(default=True, description="Enable response caching")
    default_ttl_seconds: int = Field(
        default=3600, ge=1, description="Default cache entry lifetime"
    )
    max_entries: int = Field(
        default=1024, ge=1, description="Capacity of the in-memory cache store"
    )


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=True, description="Enable Redis service")
    url: str = Field(default="", description="Redis connection URL")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )
    decode_responses: bool = Field(
        default=True, description="Decode Redis responses to strings"
    )
    max_connections: int = Field(default=20, description="Connection pool size")
    socket_timeout: float = Field(default=5.0, description="Socket timeout in seconds")
    socket_connect_timeout: float = Field(
        default=5.0, description="Connect timeout in seconds"
    )

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if self.password:
            if "@" in self.url:
                # URL already has auth info
                return self.url
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url

    @property
    def sanitized_connection_string(self) -> str:
        """Connection string safe for logs."""
        if self.password:
            return self.connection_string.replace(self.password, "***")
        return self.connection_string


class JWTConfig(BaseModel):
    """JWT issuance and validation configuration."""

    secret: str = Field(
        default="change-me-in-production",
        description="HMAC secret used to sign and verify access tokens",
    )
    algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256", description="Signing algorithm"
    )
    issuer: str = Field(default="catalog-api", description="Issuer (iss) claim")
    audience: str = Field(default="catalog-api", description="Audience (aud) claim")
    expires_in_seconds: int = Field(
        default=24 * 3600, ge=60, description="Access token lifetime"
    )
    leeway_seconds: int = Field(default=60, description="Clock skew tolerance")


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./catalog.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and (":memory:" in self.url or self.url == "sqlite://")


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="JWT configuration"
    )
    cache: CacheConfig = Field(
        default_factory=CacheConfig, description="Response cache configuration"
    )
    rate_limiter: RateLimiterConfig = Field(
        default_factory=RateLimiterConfig, description="Rate limiter configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
