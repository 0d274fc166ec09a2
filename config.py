"""
Configuration management for AdherenceLens
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "AdherenceLens"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # Database
    DATABASE_URL: str = "sqlite:///./adherence_lens.db"
    DATABASE_ECHO: bool = False

    # Calendar
    DEFAULT_TIMEZONE: str = "UTC"

    # Analysis windows (days)
    DEFAULT_WINDOW_DAYS: int = 30
    MAX_WINDOW_DAYS: int = 365
    DEFAULT_LOOKBACK_DAYS: int = 90
    MAX_LOOKBACK_DAYS: int = 365

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def configure_logging() -> None:
    """Configure root logging from settings"""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    Thresholds used by the adherence, insight and correlation engines.

    Every engine takes one of these in its constructor so thresholds can be
    tuned (or pinned in tests) without touching engine code.
    """

    # Streaks
    streak_praise_days: int = 7

    # Low adherence per medication
    low_adherence_percentage: int = 70
    low_adherence_min_doses: int = 5

    # Time-of-day weak spots
    time_pattern_missed_percentage: int = 30
    time_pattern_min_doses: int = 5
    time_pattern_margin: int = 20
    time_pattern_warning_percentage: int = 50

    # Weekly patterns
    weekend_gap_percentage: int = 15
    trend_change_percentage: int = 10

    max_insights: int = 5

    # Correlation
    min_correlation_points: int = 10
    high_confidence_points: int = 30
    high_confidence_strength: float = 0.7
    medium_confidence_points: int = 15
    medium_confidence_strength: float = 0.4
    weak_correlation_strength: float = 0.2
    direction_epsilon: float = 1e-9
    notable_change_percentage: float = 10.0
    supported_metrics: Tuple[str, ...] = ("weight",)

    # Aggregation
    zero_schedule_percentage: int = 100
    derive_unlogged_missed: bool = True


# Database table names
class TableNames:
    USERS = "users"
    MEDICATIONS = "medications"
    DOSE_RECORDS = "dose_records"
    METRIC_SAMPLES = "metric_samples"
    CORRELATION_RESULTS = "correlation_results"


settings = get_settings()
analytics_config = AnalyticsConfig()
