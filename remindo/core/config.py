"""Configuration management for the reminders service."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()


class Settings(BaseModel):
    """Application configuration loaded from environment variables."""

    app_env: str = "dev"
    database_url: str = "sqlite:///./remindo.db"
    cors_origins: list[str] = Field(default_factory=list)
    version: str = "0.1.0"
    storage_key: str = "remindo_reminders"
    scan_interval_seconds: float = Field(default=60.0, gt=0)
    due_tolerance_minutes: float = Field(default=5.0, gt=0)
    scanner_enabled: bool = True
    notifications_enabled: bool = True
    notify_webhook_url: str = ""
    notification_feed_size: int = Field(default=100, gt=0)
    legacy_monthly_wrap: bool = False

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            if not value:
                return []
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        if isinstance(value, list):
            return value
        return []

    @property
    def async_database_url(self) -> str:
        if self.database_url.startswith("sqlite+aiosqlite://"):
            return self.database_url
        if self.database_url.startswith("sqlite:///"):
            return self.database_url.replace("sqlite:///", "sqlite+aiosqlite:///")
        if self.database_url.startswith("sqlite://"):
            return self.database_url.replace("sqlite://", "sqlite+aiosqlite://")
        return self.database_url


def _build_settings() -> Settings:
    raw_values: dict[str, Any] = {
        "app_env": os.getenv("APP_ENV"),
        "database_url": os.getenv("DATABASE_URL"),
        "cors_origins": os.getenv("CORS_ORIGINS"),
        "version": os.getenv("APP_VERSION"),
        "storage_key": os.getenv("STORAGE_KEY"),
        "scan_interval_seconds": os.getenv("SCAN_INTERVAL_SECONDS"),
        "due_tolerance_minutes": os.getenv("DUE_TOLERANCE_MINUTES"),
        "scanner_enabled": os.getenv("SCANNER_ENABLED"),
        "notifications_enabled": os.getenv("NOTIFICATIONS_ENABLED"),
        "notify_webhook_url": os.getenv("NOTIFY_WEBHOOK_URL"),
        "notification_feed_size": os.getenv("NOTIFICATION_FEED_SIZE"),
        "legacy_monthly_wrap": os.getenv("LEGACY_MONTHLY_WRAP"),
    }
    filtered_values = {key: value for key, value in raw_values.items() if value is not None}
    return Settings(**filtered_values)


@lru_cache()
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return _build_settings()
