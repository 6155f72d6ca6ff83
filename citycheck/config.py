"""Run configuration loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for a reconciliation run, read from the environment or `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "citycheck"
    app_env: str = "development"
    log_level: str = "INFO"

    # Database (MySQL in production, anything SQLAlchemy can reach in tests)
    database_url: str = Field(..., description="SQLAlchemy URL, e.g. mysql+pymysql://user:pw@host/db")

    # Database pool
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600

    # Reconciliation
    user_batch_size: int = Field(default=500, ge=1)
    output_format: Literal["text", "json"] = "text"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
