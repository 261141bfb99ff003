"""
In-memory cache for the aggregated trajectory dataset.

Holds a single, unkeyed slot: the most recent non-empty result of a
history aggregation and the time it was captured. Readers reuse the
slot while it is younger than the TTL (60 seconds by default); it is
replaced by the next successful aggregation and never explicitly torn
down.

The slot is guarded by a lock because Flask serves requests on
multiple threads.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from backend.config import config
from backend.models.position import TimestampedPosition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Cached dataset and its capture time (seconds on the cache clock)."""
    captured_at: float
    data: List[TimestampedPosition]


class TrajectoryCache:
    """
    Thread-safe single-slot cache for trajectory datasets.

    `clock` returns the current time in seconds and can be replaced in tests.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = config.history.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock

        self._entry: Optional[CacheEntry] = None
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0

    def is_fresh(self) -> bool:
        """Check whether the slot holds data younger than the TTL."""
        with self._lock:
            if self._entry is None:
                return False
            return self._clock() - self._entry.captured_at < self.ttl_seconds

    def get(self) -> Optional[List[TimestampedPosition]]:
        """
        Get the cached dataset.

        Returns None if nothing is cached or the entry has expired.
        The returned list is the cached object itself.
        """
        with self._lock:
            if self.is_fresh():
                self._hits += 1
                return self._entry.data
            self._misses += 1
            return None

    def put(self, data: List[TimestampedPosition]) -> None:
        """Replace the slot with `data` captured now."""
        with self._lock:
            self._entry = CacheEntry(captured_at=self._clock(), data=data)
        logger.debug(f'Cache updated with {len(data)} positions')

    def clear(self) -> None:
        with self._lock:
            self._entry = None

    @property
    def age_seconds(self) -> Optional[float]:
        with self._lock:
            if self._entry is None:
                return None
            return self._clock() - self._entry.captured_at

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                'entries': len(self._entry.data) if self._entry else 0,
                'fresh': self.is_fresh(),
                'age_seconds': self.age_seconds,
                'ttl_seconds': self.ttl_seconds,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / total if total > 0 else 0,
            }
