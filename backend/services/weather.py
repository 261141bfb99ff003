"""
Weather service - current conditions at a balloon's position.

Queries the Open-Meteo forecast API for:
- Temperature (2m, °C)
- Wind speed (10m, km/h) and direction (degrees)
- Precipitation (mm)

Lookups are retried up to 3 times with linear backoff; unlike feed
lookups, a non-2xx response is retried too. Results are cached per
rounded coordinate to avoid hammering the API when several clients
inspect the same balloon.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import requests

from backend.config import config
from backend.exceptions import RetriesExhausted, WeatherUnavailable
from backend.ingestion.retry import fetch_with_retry

logger = logging.getLogger(__name__)

CURRENT_FIELDS = 'temperature_2m,wind_speed_10m,wind_direction_10m,precipitation'


@dataclass(frozen=True)
class WeatherReport:
    """Current weather at a point."""
    temperature: Optional[float]
    wind_speed: Optional[float]
    wind_direction: Optional[float]
    precipitation: Optional[float]

    def to_dict(self) -> dict:
        return {
            'temperature': self.temperature,
            'wind_speed': self.wind_speed,
            'wind_direction': self.wind_direction,
            'precipitation': self.precipitation,
        }


class WeatherService:
    """
    Service to fetch current weather from Open-Meteo.

    Caches reports per (lat, lon) rounded to two decimals (~1 km).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        max_attempts: Optional[int] = None,
        cache_ttl: Optional[float] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = (base_url or config.weather.base_url).rstrip('/')
        self.max_attempts = max_attempts or config.weather.fetch_attempts
        self._cache_ttl = config.weather.cache_ttl_seconds if cache_ttl is None else cache_ttl
        self.session = session or requests.Session()
        self._sleep = sleep

        # Cache: (lat, lon) -> (WeatherReport, timestamp)
        self._cache: Dict[Tuple[float, float], Tuple[WeatherReport, float]] = {}
        self._lock = threading.RLock()

        self._requests = 0
        self._failures = 0

    @staticmethod
    def _cache_key(lat: float, lon: float) -> Tuple[float, float]:
        return (round(lat, 2), round(lon, 2))

    def get_current(self, lat: float, lon: float) -> WeatherReport:
        """
        Get current weather at (lat, lon).

        Raises:
            WeatherUnavailable if the API cannot be reached after retries
            or returns an unexpected payload
        """
        key = self._cache_key(lat, lon)

        cached = self._get_cached(key)
        if cached is not None:
            logger.debug(f'Weather cache hit for {key}')
            return cached

        report = self._fetch_from_api(lat, lon)
        self._set_cached(key, report)
        return report

    def _fetch_from_api(self, lat: float, lon: float) -> WeatherReport:
        params = {
            'latitude': lat,
            'longitude': lon,
            'current': CURRENT_FIELDS,
        }

        self._requests += 1
        try:
            response = fetch_with_retry(
                f'{self.base_url}/forecast',
                self.max_attempts,
                session=self.session,
                retry_on_status=True,
                sleep=self._sleep,
                params=params,
                timeout=config.weather.timeout_seconds,
            )
            data = response.json()
        except RetriesExhausted as e:
            self._failures += 1
            logger.error(f'Error fetching weather: {e}')
            raise WeatherUnavailable(str(e)) from e
        except ValueError as e:
            self._failures += 1
            logger.error(f'Error parsing weather response: {e}')
            raise WeatherUnavailable('Invalid weather data format') from e

        current = data.get('current') if isinstance(data, dict) else None
        if not isinstance(current, dict) or not current:
            self._failures += 1
            raise WeatherUnavailable('Invalid weather data format')

        return WeatherReport(
            temperature=current.get('temperature_2m'),
            wind_speed=current.get('wind_speed_10m'),
            wind_direction=current.get('wind_direction_10m'),
            precipitation=current.get('precipitation'),
        )

    def _get_cached(self, key: Tuple[float, float]) -> Optional[WeatherReport]:
        """Get cached report if not expired."""
        with self._lock:
            if key in self._cache:
                report, timestamp = self._cache[key]
                if time.time() - timestamp < self._cache_ttl:
                    return report
                del self._cache[key]
        return None

    def _set_cached(self, key: Tuple[float, float], report: WeatherReport) -> None:
        with self._lock:
            self._cache[key] = (report, time.time())

            # Limit cache size
            if len(self._cache) > 500:
                sorted_items = sorted(self._cache.items(), key=lambda x: x[1][1])
                for old_key, _ in sorted_items[:100]:
                    del self._cache[old_key]

    @property
    def stats(self) -> dict:
        """Get service statistics."""
        with self._lock:
            return {
                'cache_size': len(self._cache),
                'requests': self._requests,
                'failures': self._failures,
            }
