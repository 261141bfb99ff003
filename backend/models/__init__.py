"""
Data models for BalloonWatch.

Plain value types; nothing here is persisted. The only stored state is
the aggregator's in-memory trajectory cache.
"""

from backend.models.position import (
    HourResult,
    PositionRecord,
    TimestampedPosition,
    snapshot_time,
)

__all__ = [
    'HourResult',
    'PositionRecord',
    'TimestampedPosition',
    'snapshot_time',
]
