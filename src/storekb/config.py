"""Configuration management backed by pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store (WordPress + WooCommerce REST API)
    store_url: str = "http://localhost:8080"
    wc_consumer_key: str = ""
    wc_consumer_secret: str = ""
    wp_username: str = ""
    wp_app_password: str = ""
    http_timeout: float = 10.0

    # Redis
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0
    redis_queue_scan: str = "q:kb-scan"

    # Cache
    cache_backend: Literal["memory", "redis"] = "memory"
    cache_prefix: str = "storekb:scanner"
    cache_ttl: int = Field(default=3600, ge=0)

    # Scanner
    batch_size: int = Field(default=100, ge=1)
    max_batch_size: int = Field(default=500, ge=1)
    max_content_length: int = Field(default=10000, ge=1)
    fallback_language: str = "en"
    snapshot_path: Optional[Path] = None

    # Application
    log_level: str = "INFO"

    @property
    def redis_url(self) -> str:
        """Build Redis connection string."""
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def api_base(self) -> str:
        """Root of the store's REST API."""
        return f"{self.store_url.rstrip('/')}/wp-json"


# Global settings instance
settings = Settings()
