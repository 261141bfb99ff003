"""
Balloon position records.

The upstream feed carries bare [latitude, longitude, altitude] triples with
no time information. Timestamps are synthesized by the history aggregator
from the hour bucket a snapshot was fetched from (hour 0 = most recent,
hour N = N hours ago).
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional


@dataclass(frozen=True)
class PositionRecord:
    """
    A single balloon fix from one hourly snapshot.

    All three values are finite floats; the feed parser never emits
    anything else.
    """
    latitude: float
    longitude: float
    altitude: float

    def stamped(self, timestamp: datetime) -> 'TimestampedPosition':
        """Attach a timestamp, producing a trajectory point."""
        return TimestampedPosition(
            latitude=self.latitude,
            longitude=self.longitude,
            altitude=self.altitude,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'altitude': self.altitude,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Optional['PositionRecord']:
        """
        Build a record from an API payload object.

        Returns None when a field is missing or not a finite number.
        """
        try:
            values = [float(data[key]) for key in ('latitude', 'longitude', 'altitude')]
        except (KeyError, TypeError, ValueError):
            return None
        if not all(math.isfinite(v) for v in values):
            return None
        return cls(*values)


@dataclass(frozen=True)
class TimestampedPosition:
    """
    Position record tagged with the time of its hourly snapshot.

    `timestamp` is a timezone-aware UTC datetime; it is serialized
    as an ISO-8601 string.
    """
    latitude: float
    longitude: float
    altitude: float
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'altitude': self.altitude,
            'timestamp': self.timestamp.isoformat(timespec='milliseconds'),
        }


def snapshot_time(now: datetime, hour_offset: int) -> datetime:
    """Time assigned to records of the snapshot `hour_offset` hours back."""
    return now - timedelta(hours=hour_offset)


@dataclass
class HourResult:
    """
    Outcome of fetching one hourly snapshot through the proxy contract.

    Either `positions` (possibly empty, status 200) or an `error` message
    with the HTTP status to report. `hour` is set on internal failures
    so the caller can tell which snapshot broke.
    """
    positions: List[PositionRecord] = field(default_factory=list)
    status_code: int = 200
    error: Optional[str] = None
    hour: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, positions: List[PositionRecord]) -> 'HourResult':
        return cls(positions=positions)

    @classmethod
    def failure(
        cls,
        error: str,
        status_code: int,
        hour: Optional[str] = None,
    ) -> 'HourResult':
        return cls(error=error, status_code=status_code, hour=hour)

    def to_payload(self):
        """JSON body for the proxy endpoint (list on success, object on error)."""
        if self.ok:
            return [p.to_dict() for p in self.positions]

        payload = {'error': self.error}
        if self.hour is not None:
            payload['hour'] = self.hour
        return payload
