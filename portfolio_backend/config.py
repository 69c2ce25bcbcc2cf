"""
Configuration and settings for the portfolio backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api/v1")

    # Document store (any SQLAlchemy URL)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible object storage
    storage_bucket: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_endpoint: Optional[str] = Field(default=None)
    storage_public_base_url: Optional[str] = Field(default=None)
    storage_root_folder: str = Field(default="MY PORTFOLIO")
    storage_connect_timeout: float = Field(default=5.0)
    storage_read_timeout: float = Field(default=30.0)
    storage_max_attempts: int = Field(default=3, ge=1)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Frontends (CORS origins, reset links)
    portfolio_url: Optional[str] = Field(default=None)
    dashboard_url: Optional[str] = Field(default=None)

    # Session token
    jwt_secret_key: str = Field(..., min_length=1)
    jwt_expires_days: int = Field(default=7, ge=1)
    cookie_expires_days: int = Field(default=7, ge=1)
    cookie_secure: bool = Field(default=True)

    # Outbound mail
    smtp_host: Optional[str] = Field(default=None)
    smtp_port: int = Field(default=587)
    smtp_mail: Optional[str] = Field(default=None)
    smtp_password: Optional[str] = Field(default=None)

    # The user whose profile the public portfolio shows
    portfolio_user_id: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @property
    def allowed_origins(self) -> list[str]:
        return [url for url in (self.portfolio_url, self.dashboard_url) if url]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
