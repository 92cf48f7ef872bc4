"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # ==========================================================================
    # API Server
    # ==========================================================================

    api_host: str = "0.0.0.0"
    api_port: int = 3000
    cors_origins: str = "http://localhost:5173"

    # ==========================================================================
    # Database
    # ==========================================================================

    database_url: str = "sqlite:///./folio.db"
    database_echo: bool = False

    # ==========================================================================
    # Authentication
    # ==========================================================================

    jwt_secret_key: str = "dev-jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24 * 7
    jwt_refresh_token_expire_days: int = 30

    # ==========================================================================
    # Uploads
    # ==========================================================================

    upload_path: str = "./uploads"
    upload_url_prefix: str = "/uploads"
    max_file_size: int = 5 * 1024 * 1024
    max_files_per_request: int = 5

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================

    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100

    # ==========================================================================
    # Optional Services
    # ==========================================================================

    sentry_dsn: str = ""

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
