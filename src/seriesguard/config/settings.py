"""
Application settings using Pydantic.

Provides environment-based configuration loading with SERIESGUARD_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Prometheus
    prometheus_name: str = "prom"
    prometheus_urls: list[str] = ["http://localhost:9090"]
    prometheus_timeout: float = 120.0
    prometheus_required: bool = False
    prometheus_headers: dict[str, str] = {}

    # Series check
    series_lookback: str = "7d"
    series_step: str = "5m"
    series_min_age: str = "2h"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "SERIESGUARD_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
