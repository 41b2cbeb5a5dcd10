"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def parse_csv(value: str | None) -> set[str]:
    """Parse a comma-separated setting into a set.

    Examples:
        >>> sorted(parse_csv("https://b.example, https://a.example"))
        ['https://a.example', 'https://b.example']
        >>> parse_csv(None)
        set()
    """
    if not value:
        return set()

    return {item.strip() for item in value.split(",") if item.strip()}


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    list_limit: int = Field(
        100,
        description="Maximum number of posts returned by the list endpoint",
        ge=1,
        le=100,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-caller rate limiting on post creation",
    )
    rate_limit_requests: int = Field(
        3,
        description="Maximum number of posts a caller may create per window",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Sliding window size in seconds",
        ge=1,
    )
    rate_limit_backend: Literal["memory", "redis"] = Field(
        "memory",
        description="Where sliding-window state lives: in-process or in Redis",
    )
    rate_limit_prefix: str = Field(
        "chirp:ratelimit",
        description="Key prefix for limiter entries in a shared Redis instance",
    )
    rate_limit_analytics: bool = Field(
        True,
        description="Record per-caller success/blocked counters (Redis backend only)",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Storage configuration (any SQLAlchemy async URL)."""

    url: str = Field(
        "sqlite+aiosqlite:///./chirp.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(
        False,
        description="Echo SQL statements to the log",
    )
    create_tables: bool = Field(
        True,
        description="Create missing tables on startup (disable when migrations own the schema)",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class ClerkSettings(BaseSettings):
    """Identity provider configuration (directory lookups and session tokens)."""

    secret_key: str | None = Field(
        None,
        description="Clerk Backend API secret key (sk_...)",
    )
    api_url: str = Field(
        "https://api.clerk.com/v1",
        description="Clerk Backend API base URL",
    )
    jwks_url: str | None = Field(
        None,
        description="JWKS endpoint for session tokens; defaults to {api_url}/jwks",
    )
    authorized_parties: str | None = Field(
        None,
        description="Comma-separated list of allowed 'azp' origins; empty allows any",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Timeout for Backend API calls in seconds",
    )
    leeway_seconds: int = Field(
        5,
        description="Clock skew tolerated when checking token exp/nbf",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="CLERK_",
        case_sensitive=False,
    )

    @property
    def authorized_party_list(self) -> set[str]:
        return parse_csv(self.authorized_parties)


class RedisSettings(BaseSettings):
    """Redis connection used by the shared rate limiter backend."""

    url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL",
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field(
        "json",
        description="Log line format",
    )
    output: Literal["stdout", "file"] = Field(
        "stdout",
        description="Log destination",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (default logs/app.log)",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build(settings_cls: type[BaseSettings]) -> BaseSettings:
    """Build a nested settings group from the environment.

    Static type checkers treat BaseSettings fields as constructor arguments,
    which is not how BaseSettings is meant to be used.
    """

    return settings_cls()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=lambda: _build(AppSettings))
    database: DatabaseSettings = Field(default_factory=lambda: _build(DatabaseSettings))
    clerk: ClerkSettings = Field(default_factory=lambda: _build(ClerkSettings))
    redis: RedisSettings = Field(default_factory=lambda: _build(RedisSettings))
    log: LogSettings = Field(default_factory=lambda: _build(LogSettings))

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
