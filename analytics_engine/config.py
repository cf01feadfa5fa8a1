"""Configuration settings for the analytics engine"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Server
    port: int = 8008
    debug: bool = False

    # Time series storage
    max_points_per_metric: int = 10000
    retention_hours: int = 24
    max_alerts: int = 1000

    # Scheduling
    update_interval_seconds: float = 5.0
    debounce_ms: int = 100
    default_time_frame: str = "1h"
    realtime_time_frame: str = "5m"
    throughput_window_seconds: int = 300

    # Trend detection
    trend_sustained_period: int = 7
    trend_emerging_threshold: float = 50.0
    trend_correlation_threshold: float = 0.7
    trend_confidence_threshold: float = 0.6
    trend_max_related: int = 5
    trend_history_size: int = 1000
    max_points_per_trend: int = 5000

    class Config:
        env_file = ".env"
        env_prefix = "ANALYTICS_"
        case_sensitive = False


settings = Settings()
