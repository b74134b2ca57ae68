# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Application configuration loaded from the environment."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "HR Hub"

    # Database
    database_url: str = Field(
        default="sqlite:///./hrhub.db",
        description="SQLAlchemy database URL",
    )

    # Security
    secret_key: str = Field(
        default="dev-secret-key-change-in-production",
        description="Secret used to sign application data",
    )
    session_expiry_days: int = Field(default=7, description="Session lifetime in days")

    # Access control
    permission_cache_ttl_seconds: float = Field(
        default=0,
        description="Lifetime of cached permission decisions, 0 disables the cache",
    )
    seed_on_startup: bool = Field(
        default=True,
        description="Seed core permissions and default roles on startup",
    )

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
