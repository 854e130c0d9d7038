"""Application configuration using Pydantic Settings.

Each concern reads its own environment prefix (``APP_``, ``LOG_``,
``CACHE_``, ``SEARCH_``, ``RATE_LIMIT_``). ``APP_ENV`` selects an optional
``.env.{APP_ENV}`` file at the project root that is loaded into the process
environment before any settings object is built.

Durations are in seconds throughout.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_path = PROJECT_ROOT / ENV_FILE_MAP.get(APP_ENV, ".env.development")

# Nested BaseSettings do not inherit env_file, so the file goes straight
# into os.environ. Deployments without a file rely on real env vars.
if _env_path.is_file():
    load_dotenv(_env_path, override=True)


# Default factories: each nested settings object reads the environment when
# the parent is built, not at import time.
def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_cache_settings() -> "CacheSettings":
    return CacheSettings()


def _build_search_settings() -> "SearchSettings":
    return SearchSettings()


def _build_rate_limit_settings() -> "RateLimitSettings":
    return RateLimitSettings()


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required on admin routes",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )
    inventory_seed_path: str | None = Field(
        None,
        description="Optional JSON file with the vehicle listings loaded at startup",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """TTL cache configuration."""

    key_prefix: str = Field(
        "slc_cache_",
        description="Namespace prefix applied to every key the cache writes",
    )
    default_ttl_seconds: float = Field(
        3600.0,
        description="TTL used when an entry is stored without an explicit TTL",
        gt=0,
    )
    search_ttl_seconds: float = Field(
        900.0,
        description="TTL for cached search results",
        gt=0,
    )
    cleanup_interval_seconds: float = Field(
        300.0,
        description="Interval of the background sweep removing expired entries",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class SearchSettings(BaseSettings):
    """Search indexer configuration."""

    enable_cache: bool = Field(True, description="Cache search results")
    enable_index: bool = Field(
        True,
        description="Use the inverted index (linear scan when disabled)",
    )
    enable_debounce: bool = Field(True, description="Coalesce rapid repeated searches")
    debounce_delay_seconds: float = Field(
        0.3,
        description="Quiet period before a debounced search runs",
        ge=0,
    )
    debounce_scheduler: Literal["thread", "asyncio"] = Field(
        "thread",
        description=(
            "Timer backing debounced searches: daemon threads, or the running "
            "event loop for hosts that debounce from async code"
        ),
    )
    max_results: int = Field(50, description="Maximum matches returned", ge=1)
    min_query_length: int = Field(
        2,
        description="Queries shorter than this return no results",
        ge=1,
    )
    suggestions_limit: int = Field(10, description="Maximum suggestions returned", ge=1)

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Per-category fixed-window rate limits."""

    enabled: bool = Field(True, description="Enable rate limiting")
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers",
    )
    identity_strategy: Literal["ip", "user", "session", "combined"] = Field(
        "combined",
        description="How callers are identified: ip, user, session or combined",
    )

    general_requests: int = Field(100, ge=1)
    general_window_seconds: float = Field(15 * 60, gt=0)
    auth_requests: int = Field(5, ge=1)
    auth_window_seconds: float = Field(15 * 60, gt=0)
    search_requests: int = Field(30, ge=1)
    search_window_seconds: float = Field(60, gt=0)
    upload_requests: int = Field(10, ge=1)
    upload_window_seconds: float = Field(60, gt=0)
    messaging_requests: int = Field(20, ge=1)
    messaging_window_seconds: float = Field(60, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    def category_limits(self) -> dict[str, tuple[int, float]]:
        """Return ``{category: (limit, window_seconds)}`` for every category."""

        return {
            "general": (self.general_requests, self.general_window_seconds),
            "auth": (self.auth_requests, self.auth_window_seconds),
            "search": (self.search_requests, self.search_window_seconds),
            "upload": (self.upload_requests, self.upload_window_seconds),
            "messaging": (self.messaging_requests, self.messaging_window_seconds),
        }


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    cache: CacheSettings = Field(default_factory=_build_cache_settings)
    search: SearchSettings = Field(default_factory=_build_search_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Process-wide defaults; create_app() accepts its own Settings for tests
settings = Settings()
