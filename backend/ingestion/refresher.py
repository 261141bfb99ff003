"""
Background cache warmer.

Calls the history aggregator on a fixed interval so API readers find a
fresh dataset in the cache. The aggregator is a pull contract and works
without this; the warmer only keeps the first request of each minute
from paying for the upstream round trips.
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from backend.config import config
from backend.ingestion.aggregator import HistoryAggregator

logger = logging.getLogger(__name__)


class HistoryRefresher:
    """
    Runs `get_history()` periodically in a daemon thread.

    A failing cycle is logged and counted; the loop keeps going.
    """

    def __init__(
        self,
        aggregator: HistoryAggregator,
        interval: Optional[float] = None,
    ):
        self.aggregator = aggregator
        self.interval = interval or config.refresh.interval_seconds

        # State tracking
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._refresh_count = 0
        self._error_count = 0
        self._last_refresh_time: float = 0

        # Callbacks for external integration
        self._on_update_callbacks: List[Callable[[int], None]] = []

    def add_update_callback(self, callback: Callable[[int], None]) -> None:
        """
        Register callback to be invoked after each refresh.

        Callback receives the number of positions in the dataset.
        """
        self._on_update_callbacks.append(callback)

    def refresh_once(self) -> int:
        """
        Execute one refresh cycle.

        Returns count of positions available, or -1 on error.
        """
        try:
            data = self.aggregator.get_history()
        except Exception as e:
            self._error_count += 1
            logger.error(f'History refresh error: {e}')
            return -1

        self._refresh_count += 1
        self._last_refresh_time = time.time()

        for callback in self._on_update_callbacks:
            try:
                callback(len(data))
            except Exception as e:
                logger.error(f'Update callback error: {e}')

        return len(data)

    def run_continuous(self) -> None:
        """
        Run refresh loop until stopped.

        This method blocks - use start_background() for non-blocking.
        """
        logger.info(f'Starting history refresh (interval={self.interval}s)')

        while not self._stop_event.is_set():
            self.refresh_once()
            self._stop_event.wait(self.interval)

        logger.info('History refresh stopped')

    def start_background(self) -> None:
        """Start refresh loop in background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning('History refresh already running')
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_continuous,
            name='history-refresher',
            daemon=True,
        )
        self._thread.start()
        logger.info('Background history refresh started')

    def stop(self) -> None:
        """Stop background refresh."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    @property
    def stats(self) -> dict:
        """Get refresh statistics."""
        return {
            'refresh_count': self._refresh_count,
            'error_count': self._error_count,
            'last_refresh_time': self._last_refresh_time,
            'interval_seconds': self.interval,
            'running': self.running,
        }
