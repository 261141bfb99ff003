"""
Configuration management for BalloonWatch.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


def _parse_hours(value: str) -> Tuple[int, ...]:
    """Parse '0,1,2,3' into a tuple of hour offsets, ignoring blanks."""
    hours = []
    for part in value.split(','):
        part = part.strip()
        if part:
            hours.append(int(part))
    return tuple(hours)


@dataclass(frozen=True)
class FeedConfig:
    """Upstream balloon feed configuration."""
    base_url: str = os.getenv('FEED_BASE_URL', 'https://a.windbornesystems.com')
    timeout_seconds: float = float(os.getenv('FEED_TIMEOUT_SECONDS', '10'))

    # Feed publishes one snapshot per hour, 00 (latest) to 23
    max_hour_offset: int = 23


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy shared by feed and weather lookups."""
    backoff_seconds: float = float(os.getenv('RETRY_BACKOFF_SECONDS', '1.0'))


@dataclass(frozen=True)
class HistoryConfig:
    """Historical aggregation settings."""
    cache_ttl_seconds: float = float(os.getenv('HISTORY_CACHE_TTL_SECONDS', '60'))
    candidate_hours: Tuple[int, ...] = _parse_hours(os.getenv('HISTORY_CANDIDATE_HOURS', '0,1,2,3'))
    fetch_attempts: int = int(os.getenv('HISTORY_FETCH_ATTEMPTS', '2'))
    politeness_delay: float = float(os.getenv('HISTORY_POLITENESS_DELAY', '0.2'))
    default_hours_back: int = 23

    # Aggregate through a remote /api/balloon endpoint instead of the feed
    source_url: Optional[str] = os.getenv('HISTORY_SOURCE_URL') or None


@dataclass(frozen=True)
class WeatherConfig:
    """Open-Meteo weather lookup configuration."""
    base_url: str = os.getenv('WEATHER_BASE_URL', 'https://api.open-meteo.com/v1')
    fetch_attempts: int = int(os.getenv('WEATHER_FETCH_ATTEMPTS', '3'))
    cache_ttl_seconds: int = int(os.getenv('WEATHER_CACHE_TTL_SECONDS', '300'))
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class RefreshConfig:
    """Background cache warmer."""
    interval_seconds: int = int(os.getenv('REFRESH_INTERVAL_SECONDS', '60'))

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    feed: FeedConfig
    retry: RetryConfig
    history: HistoryConfig
    weather: WeatherConfig
    refresh: RefreshConfig

    # Flask settings
    secret_key: str
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        feed=FeedConfig(),
        retry=RetryConfig(),
        history=HistoryConfig(),
        weather=WeatherConfig(),
        refresh=RefreshConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
