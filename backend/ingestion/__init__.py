"""
Data ingestion module for BalloonWatch.

Handles fetching hourly feed snapshots, parsing them into position
records, and aggregating recent hours into a cached trajectory dataset.
"""

from backend.ingestion.aggregator import ClientHourSource, HistoryAggregator, ProxyHourSource
from backend.ingestion.feed_parser import parse_feed
from backend.ingestion.refresher import HistoryRefresher
from backend.ingestion.retry import call_with_retry, fetch_with_retry
from backend.ingestion.treasure_client import TreasureClient

__all__ = [
    'ClientHourSource',
    'HistoryAggregator',
    'HistoryRefresher',
    'ProxyHourSource',
    'TreasureClient',
    'call_with_retry',
    'fetch_with_retry',
    'parse_feed',
]
