"""
Configuration settings for the Bus Tracker service.

This module handles application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Bus Tracker"
    api_version: str = "v1"
    debug: bool = False
    log_level: str = "INFO"

    # Tracking policy
    freshness_window_seconds: float = 120.0  # Drivers silent for longer drop out of the active set
    history_capacity: int = 100
    default_history_limit: int = 50
    nearby_radius_km: float = 2.0

    # Broadcasting
    subscriber_queue_size: int = 100
    offline_on_disconnect: bool = False

    # Development
    seed_demo_drivers: bool = False

    # Redis Configuration (location relay)
    redis_url: str = "redis://localhost:6379/0"
    redis_decode_responses: bool = True
    redis_publish_enabled: bool = False
    redis_channel: str = "bus_tracker:locations"
    redis_failure_threshold: int = 3
    redis_reset_timeout: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
