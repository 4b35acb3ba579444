"""Configuration settings for the SkyDrift service."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Application configuration loaded from environment variables."""

    skydrift_env: str = os.getenv("SKYDRIFT_ENV", "local")
    log_level: str = os.getenv("SKYDRIFT_LOG_LEVEL", "INFO")

    # Balloon position feed
    feed_base_url: str = os.getenv(
        "FEED_BASE_URL", "https://a.windbornesystems.com/treasure"
    )
    feed_timeout: float = float(os.getenv("FEED_TIMEOUT", "10.0"))
    feed_user_agent: str = os.getenv("FEED_USER_AGENT", "SkyDrift/1.0")

    # Wind enrichment
    enable_wind_data: bool = _get_bool("ENABLE_WIND_DATA", default=True)
    weather_base_url: str = os.getenv(
        "WEATHER_BASE_URL", "https://api.open-meteo.com/v1/forecast"
    )
    weather_timeout: float = float(os.getenv("WEATHER_TIMEOUT", "10.0"))
    wind_request_interval_ms: int = int(os.getenv("WIND_REQUEST_INTERVAL_MS", "200"))
    wind_sample_size: int = int(os.getenv("WIND_SAMPLE_SIZE", "5"))
    # Tracks sampled for wind right after each reload; 0 keeps enrichment on demand.
    batch_wind_tracks: int = int(os.getenv("BATCH_WIND_TRACKS", "0"))

    # Track reconstruction
    outlier_speed_mps: float = float(os.getenv("OUTLIER_SPEED_MPS", "300"))

    # Scheduled reload
    enable_scheduled_reload: bool = _get_bool("ENABLE_SCHEDULED_RELOAD", default=True)
    reload_interval_seconds: float = float(os.getenv("RELOAD_INTERVAL_SECONDS", "300"))


settings = Settings()

__all__ = ["settings", "Settings"]
