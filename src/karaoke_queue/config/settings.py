"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import (
    BusyTimeoutMs,
    ConnectionTimeoutS,
    MaxQueueSize,
    PositiveInt,
    SessionCodeLength,
)


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/karaoke.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: BusyTimeoutMs = Field(
        default=5000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: ConnectionTimeoutS = Field(
        default=10,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Only SQLite is supported by the session repository."""
        if not v.startswith("sqlite://"):
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class SessionSettings(BaseModel):
    """Session and queue limits."""

    model_config = SettingsConfigDict(frozen=True)

    code_length: SessionCodeLength = 6
    max_sessions: PositiveInt = 1000
    max_queue_size: MaxQueueSize = 100


class CastSettings(BaseModel):
    """Cast transport configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)
    devices: str = Field(default="", validation_alias=AliasChoices("devices", "cast_devices"))

    @property
    def device_names(self) -> tuple[str, ...]:
        """Configured device names from the comma-separated ``devices`` value."""
        return tuple(name.strip() for name in self.devices.split(",") if name.strip())


class ResolverSettings(BaseModel):
    """Link resolver configuration."""

    model_config = SettingsConfigDict(frozen=True)

    timeout_seconds: float = Field(default=15.0, gt=0.0, le=120.0)
    fetch_titles: bool = True
    socket_timeout: int = Field(default=10, ge=1, le=60)


class CleanupSettings(BaseModel):
    """Idle session expiry configuration."""

    model_config = SettingsConfigDict(frozen=True)

    stale_session_hours: int = Field(default=24, ge=1)
    cleanup_interval_minutes: int = Field(default=30, ge=1)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DATABASE__URL, SESSION__MAX_QUEUE_SIZE, CAST__DEVICES, etc. (nested)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    cast: CastSettings = Field(default_factory=CastSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    cleanup: CleanupSettings = Field(default_factory=CleanupSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
