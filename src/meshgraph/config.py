"""
Application settings using Pydantic.

Provides environment-based configuration loading with MESHGRAPH_ prefix.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "postgresql+psycopg://localhost/meshgraph"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # Debug
    debug: bool = False
    log_level: str = "INFO"

    # Reconciliation
    reconcile_interval_seconds: float = Field(default=60.0, gt=0)
    snapshot_history_limit: int = Field(default=1000, ge=1)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "MESHGRAPH_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
