"""Lightweight configuration for the Focustown tools."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Minimal application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="FOCUSTOWN_"
    )

    database_url: str = Field(
        default="sqlite:///focustown.db",
        description="SQLAlchemy URL of the local queue/snapshot database",
    )
    database_echo: bool = Field(default=False, description="Log every SQL statement")
    auto_sync_enabled: bool = Field(
        default=False, description="Start the periodic sync timer with the API"
    )
    auto_sync_interval_seconds: float = Field(
        default=60.0,
        description="Seconds between timer-driven sync attempts",
        gt=0.0,
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:8081", "http://127.0.0.1:8081"],
        description="Origins allowed to call the HTTP API",
    )
    log_level: str = Field(default="INFO", description="Root log level for the API process")


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
