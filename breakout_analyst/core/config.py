"""Configuration management using Pydantic v2 settings.

Only collaborator-facing knobs live here. Pattern thresholds are fixed
heuristic constants owned by the analyzer modules.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application
    app_name: str = Field(default="Breakout Analyst", description="Application name")
    environment: str = Field(
        default="development", description="Environment (development, production, test)"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    # Market data
    history_bars: int = Field(
        default=260,
        description="Number of daily bars requested from the bar provider per symbol",
    )
    benchmark_symbol: str = Field(
        default="SPY", description="Broad-market benchmark used for the RS line"
    )

    # Relative strength
    rs_lookback_days: int = Field(
        default=126, description="Return lookback (trading days) for the peer percentile rank"
    )
    rs_min_pool_size: int = Field(
        default=5, description="Minimum number of peer returns required for a percentile rank"
    )
    rs_min_aligned_bars: int = Field(
        default=30, description="Minimum date-aligned bars required against the benchmark"
    )

    # Concurrency
    analysis_concurrency: int = Field(
        default=5, description="Number of symbols analyzed concurrently by analyze_many"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
