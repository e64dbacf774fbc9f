from __future__ import annotations

import logging
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leave Engine"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://leave_engine:leave_engine@db:5432/leave_engine"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"
    accrual_interval_seconds: int = 86400


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_logging(settings: Settings) -> None:
    """Configure root logging for the API and worker processes."""
    logging.basicConfig(level=settings.log_level.upper(), format=_LOG_FORMAT)
