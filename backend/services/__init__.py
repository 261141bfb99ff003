"""
External integration services.

Handles third-party API calls with retries, caching, and graceful
degradation when services are unavailable.
"""

from backend.services.weather import WeatherReport, WeatherService

__all__ = ['WeatherReport', 'WeatherService']
