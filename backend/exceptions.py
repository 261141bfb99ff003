"""
Exception types for BalloonWatch.

Upstream problems are split the same way the API reports them:
transport failures that survived every retry, upstream responses
with a non-success status, and weather lookups that produced nothing usable.
"""

from typing import Optional


class BalloonWatchError(Exception):
    """Base class for all BalloonWatch errors."""


class RetriesExhausted(BalloonWatchError):
    """Raised when every attempt of a retried call has failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        message = f'Failed to fetch after {attempts} retries'
        if last_error is not None:
            message = f'{message}: {last_error}'
        super().__init__(message)


class UpstreamStatusError(BalloonWatchError):
    """Upstream answered with a non-2xx status. Not retried."""

    def __init__(self, status_code: int, url: str = ''):
        self.status_code = status_code
        self.url = url
        super().__init__(f'HTTP error! status: {status_code}')


class WeatherUnavailable(BalloonWatchError):
    """Weather lookup failed or returned an unexpected payload."""
