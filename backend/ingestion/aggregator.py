"""
History aggregator - assembles a trajectory dataset from hourly snapshots.

The aggregator is after "some recent data", not "all available history":

1. Cache: reuse the last result while it is fresh (60s by default)
2. Fetch: walk a short list of candidate hour offsets, newest first
3. Stamp: tag every position with now - offset hours
4. Short-circuit: stop at the first offset that yields anything
5. Store: cache non-empty results, return them newest first

Offsets are fetched strictly one after another, with a small politeness
delay between them. A failure for one hour is logged and the next hour
is tried; an aggregation that finds nothing returns an empty list.

Hour sources:
- ClientHourSource: reads the feed in-process through TreasureClient
- ProxyHourSource: reads a deployed /api/balloon endpoint over HTTP
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

import requests

from backend.cache import TrajectoryCache
from backend.config import config
from backend.ingestion.retry import call_with_retry, fetch_with_retry
from backend.ingestion.treasure_client import TreasureClient, format_hour
from backend.models.position import PositionRecord, TimestampedPosition, snapshot_time

logger = logging.getLogger(__name__)


class ClientHourSource:
    """
    Hour source backed by a TreasureClient.

    Network errors are retried; upstream status errors are not.
    """

    def __init__(
        self,
        client: TreasureClient,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.max_attempts = max_attempts or config.history.fetch_attempts
        self._sleep = sleep

    def positions(self, hour_offset: int) -> List[PositionRecord]:
        return call_with_retry(
            lambda: self.client.fetch_hour(hour_offset),
            self.max_attempts,
            sleep=self._sleep,
        )


class ProxyHourSource:
    """
    Hour source backed by a remote `/api/balloon?hour=HH` endpoint.

    A JSON array becomes position records; an error object is logged
    and counts as no data for that hour.
    """

    def __init__(
        self,
        base_url: str,
        max_attempts: Optional[int] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.endpoint = f'{base_url.rstrip("/")}/api/balloon'
        self.max_attempts = max_attempts or config.history.fetch_attempts
        self.session = session or requests.Session()
        self.timeout = timeout or config.feed.timeout_seconds
        self._sleep = sleep

    def positions(self, hour_offset: int) -> List[PositionRecord]:
        hour = format_hour(hour_offset)
        response = fetch_with_retry(
            self.endpoint,
            self.max_attempts,
            session=self.session,
            sleep=self._sleep,
            params={'hour': hour},
            timeout=self.timeout,
        )
        data = response.json()

        if isinstance(data, list):
            records = []
            for item in data:
                record = PositionRecord.from_dict(item) if isinstance(item, dict) else None
                if record is not None:
                    records.append(record)
            return records

        if isinstance(data, dict) and data.get('error'):
            logger.error(f'API Error for hour {hour}: {data["error"]}')

        return []


class HistoryAggregator:
    """
    Builds and caches the trajectory dataset.

    Owns the trajectory cache exclusively. `get_history` is single-flight:
    concurrent callers wait for the running aggregation and then read
    its cached result.
    """

    def __init__(
        self,
        source=None,
        cache: Optional[TrajectoryCache] = None,
        candidate_hours: Optional[Sequence[int]] = None,
        politeness_delay: Optional[float] = None,
        now: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the aggregator.

        Args:
            source: Object with `positions(hour_offset)` (feed client if None)
            cache: Trajectory cache (a fresh one if None)
            candidate_hours: Hour offsets to try, newest first
            politeness_delay: Seconds to wait between offsets
            now: Returns the current UTC datetime
            sleep: Sleep function, injectable for tests
        """
        self.source = source or ClientHourSource(TreasureClient.from_config(), sleep=sleep)
        self.cache = cache or TrajectoryCache()
        self.candidate_hours = tuple(
            config.history.candidate_hours if candidate_hours is None else candidate_hours
        )
        self.politeness_delay = (
            config.history.politeness_delay if politeness_delay is None else politeness_delay
        )
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep
        self._lock = threading.Lock()

        # State tracking
        self._aggregation_count = 0
        self._error_count = 0
        self._last_aggregation_time: float = 0
        self._last_hours_fetched: List[int] = []

    @classmethod
    def from_config(cls) -> 'HistoryAggregator':
        """Create an aggregator from application configuration."""
        if config.history.source_url:
            source = ProxyHourSource(config.history.source_url)
        else:
            source = ClientHourSource(TreasureClient.from_config())
        return cls(source=source)

    def candidate_offsets(self, max_hours_back: int) -> List[int]:
        """Candidate offsets that fall within `max_hours_back`."""
        return [h for h in self.candidate_hours if 0 <= h <= max_hours_back]

    def get_history(self, max_hours_back: Optional[int] = None) -> List[TimestampedPosition]:
        """
        Get recent balloon positions, newest first.

        Returns the cached dataset unchanged while it is fresh. An empty
        list means no candidate hour produced data; it is not an error.

        Raises:
            ValueError if `max_hours_back` is outside 0-23
        """
        if max_hours_back is None:
            max_hours_back = config.history.default_hours_back
        if not 0 <= max_hours_back <= config.feed.max_hour_offset:
            raise ValueError(
                f'max_hours_back must be between 0 and {config.feed.max_hour_offset}'
            )

        with self._lock:
            cached = self.cache.get()
            if cached is not None:
                logger.debug(f'Serving {len(cached)} cached positions')
                return cached

            return self._aggregate(self.candidate_offsets(max_hours_back))

    def _aggregate(self, offsets: List[int]) -> List[TimestampedPosition]:
        now = self._now()
        results: List[TimestampedPosition] = []
        fetched = []

        for index, hour in enumerate(offsets):
            fetched.append(hour)
            try:
                positions = self.source.positions(hour)
                timestamp = snapshot_time(now, hour)
                results.extend(p.stamped(timestamp) for p in positions)
            except Exception as e:
                self._error_count += 1
                logger.error(f'Error fetching data for hour {format_hour(hour)}: {e}')

            # Any data at all is enough
            if results:
                break

            if index < len(offsets) - 1:
                self._sleep(self.politeness_delay)

        self._aggregation_count += 1
        self._last_aggregation_time = time.time()
        self._last_hours_fetched = fetched

        results.sort(key=lambda p: p.timestamp, reverse=True)

        if results:
            self.cache.put(results)
            logger.info(f'Aggregated {len(results)} positions from hours {fetched}')
        else:
            logger.warning(f'No balloon data found in hours {fetched}')

        return results

    @property
    def stats(self) -> dict:
        """Get aggregation statistics."""
        return {
            'aggregation_count': self._aggregation_count,
            'error_count': self._error_count,
            'last_aggregation_time': self._last_aggregation_time,
            'last_hours_fetched': list(self._last_hours_fetched),
            'candidate_hours': list(self.candidate_hours),
            'cache': self.cache.stats,
        }
