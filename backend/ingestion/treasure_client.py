"""
Client for the hourly balloon feed.

The feed publishes one snapshot file per hour:

    GET https://a.windbornesystems.com/treasure/{HH}.json

where HH is the zero-padded hour offset (00 = most recent, 23 = 23 hours
ago). The body is usually, but not reliably, a JSON array of
[latitude, longitude, altitude] triples; see feed_parser.

Every request bypasses intermediate caches so each hour is always read
fresh from upstream. Lookups are never retried here; callers that want
retries wrap `fetch_hour` (see aggregator.ClientHourSource).
"""

import logging
from typing import List, Optional

import requests

from backend.config import config
from backend.exceptions import UpstreamStatusError
from backend.ingestion.feed_parser import parse_feed
from backend.models.position import HourResult, PositionRecord

logger = logging.getLogger(__name__)

FEED_HEADERS = {
    'Accept': '*/*',
    'Cache-Control': 'no-cache',
    'Pragma': 'no-cache',
}


def format_hour(hour_offset: int) -> str:
    """Zero-pad an hour offset to the feed's two-digit file name."""
    return f'{int(hour_offset):02d}'


class TreasureClient:
    """
    Client for the balloon feed.

    Handles:
    - Feed URL construction per hour offset
    - Cache-bypassing GET requests
    - Delegating body parsing to the feed parser
    - Converting failures into structured hour results
    """

    def __init__(
        self,
        base_url: str = 'https://a.windbornesystems.com',
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

        # Statistics
        self._request_count = 0
        self._error_count = 0

    @classmethod
    def from_config(cls) -> 'TreasureClient':
        """Create client from application configuration."""
        return cls(
            base_url=config.feed.base_url,
            timeout=config.feed.timeout_seconds,
        )

    def feed_url(self, hour_offset: int) -> str:
        return f'{self.base_url}/treasure/{format_hour(hour_offset)}.json'

    def fetch_hour(self, hour_offset: int) -> List[PositionRecord]:
        """
        Fetch and parse one hourly snapshot.

        Returns:
            Parsed positions, possibly empty ("no data this hour")

        Raises:
            UpstreamStatusError on a non-2xx response
            requests.RequestException on network errors
        """
        url = self.feed_url(hour_offset)
        logger.debug(f'Fetching snapshot: {url}')

        self._request_count += 1
        response = self.session.get(url, headers=FEED_HEADERS, timeout=self.timeout)

        if not 200 <= response.status_code < 300:
            logger.error(f'HTTP error! status: {response.status_code}')
            raise UpstreamStatusError(response.status_code, url)

        positions = parse_feed(response.text)
        logger.info(f'Received {len(positions)} balloon positions for hour {format_hour(hour_offset)}')
        return positions

    def get_hour(self, hour_offset: int) -> HourResult:
        """
        Fetch one hour and report the outcome without raising.

        Upstream status errors keep their status code; any other failure
        is reported as a 500 carrying the requested hour.
        """
        try:
            return HourResult.success(self.fetch_hour(hour_offset))
        except UpstreamStatusError as e:
            self._error_count += 1
            return HourResult.failure(
                f'Failed to fetch balloon data: {e.status_code}',
                status_code=e.status_code,
            )
        except Exception as e:
            self._error_count += 1
            hour = format_hour(hour_offset)
            logger.error(f'Error fetching balloon data for hour {hour}: {e}')
            return HourResult.failure(
                'Failed to fetch balloon data',
                status_code=500,
                hour=hour,
            )

    @property
    def stats(self) -> dict:
        return {
            'base_url': self.base_url,
            'request_count': self._request_count,
            'error_count': self._error_count,
        }
