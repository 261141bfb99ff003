"""
Trajectory reconstruction and summary statistics using NumPy.

The feed carries no balloon identifiers. A balloon is identified by its
position index within each hourly snapshot, so a trajectory is the
sequence of positions at index i across the timestamp groups:

    snapshot t0 (newest): [b0, b1, b2]
    snapshot t1:          [b0, b1]
    trajectory 2:         [t0.b2]  (t1 has no index 2)

Only balloons present in the newest snapshot get a trajectory.

Summary statistics (path length, drift speed, altitude range) are
vectorized with NumPy over each trajectory's points.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

import numpy as np

from backend.models.position import TimestampedPosition

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def group_by_timestamp(
    dataset: Sequence[TimestampedPosition],
) -> Dict[datetime, List[TimestampedPosition]]:
    """Group positions by snapshot timestamp, preserving order within each group."""
    groups: Dict[datetime, List[TimestampedPosition]] = {}
    for position in dataset:
        groups.setdefault(position.timestamp, []).append(position)
    return groups


def ordered_timestamps(groups: Dict[datetime, List[TimestampedPosition]]) -> List[datetime]:
    """Snapshot timestamps, most recent first."""
    return sorted(groups, reverse=True)


def current_positions(dataset: Sequence[TimestampedPosition]) -> List[TimestampedPosition]:
    """Positions from the most recent snapshot."""
    groups = group_by_timestamp(dataset)
    if not groups:
        return []
    return groups[ordered_timestamps(groups)[0]]


@dataclass
class Trajectory:
    """Positions of one balloon across snapshots, newest first."""
    index: int
    points: List[TimestampedPosition]

    @property
    def current(self) -> TimestampedPosition:
        return self.points[0]

    def to_dict(self) -> dict:
        return {
            'index': self.index,
            'points': [p.to_dict() for p in self.points],
        }


def build_trajectories(dataset: Sequence[TimestampedPosition]) -> List[Trajectory]:
    """Build one trajectory per balloon in the most recent snapshot."""
    groups = group_by_timestamp(dataset)
    if not groups:
        return []

    timestamps = ordered_timestamps(groups)
    current = groups[timestamps[0]]

    trajectories = []
    for index in range(len(current)):
        points = [
            groups[ts][index]
            for ts in timestamps
            if index < len(groups[ts])
        ]
        trajectories.append(Trajectory(index=index, points=points))

    return trajectories


def haversine_km(
    lat1: np.ndarray, lon1: np.ndarray,
    lat2: np.ndarray, lon2: np.ndarray,
) -> np.ndarray:
    """Vectorized great-circle distance in kilometers."""
    lat1, lon1, lat2, lon2 = map(np.radians, (lat1, lon1, lat2, lon2))
    a = (
        np.sin((lat2 - lat1) / 2) ** 2 +
        np.cos(lat1) * np.cos(lat2) *
        np.sin((lon2 - lon1) / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


@dataclass
class AltitudeStats:
    mean: float
    min_val: float
    max_val: float
    std: float

    def to_dict(self) -> dict:
        return {
            'mean': self.mean,
            'min': self.min_val,
            'max': self.max_val,
            'std': self.std,
        }


@dataclass
class TrajectorySummary:
    """
    Summary statistics for a single trajectory.

    `drift_speed_kmh` is None when the trajectory spans no time
    (a single snapshot).
    """
    index: int
    point_count: int
    distance_km: float
    duration_hours: float
    drift_speed_kmh: Optional[float]
    altitude: AltitudeStats

    def to_dict(self) -> dict:
        return {
            'index': self.index,
            'point_count': self.point_count,
            'distance_km': round(self.distance_km, 2),
            'duration_hours': round(self.duration_hours, 3),
            'drift_speed_kmh': round(self.drift_speed_kmh, 2) if self.drift_speed_kmh is not None else None,
            'altitude': self.altitude.to_dict(),
        }


class TrajectoryAnalyzer:
    """Computes per-balloon and fleet-wide statistics from a trajectory dataset."""

    def summarize(self, trajectory: Trajectory) -> TrajectorySummary:
        # Chronological order for path length
        points = list(reversed(trajectory.points))

        lats = np.array([p.latitude for p in points], dtype=np.float64)
        lons = np.array([p.longitude for p in points], dtype=np.float64)
        alts = np.array([p.altitude for p in points], dtype=np.float64)
        times = np.array([p.timestamp.timestamp() for p in points], dtype=np.float64)

        if len(points) > 1:
            distance_km = float(np.sum(haversine_km(lats[:-1], lons[:-1], lats[1:], lons[1:])))
        else:
            distance_km = 0.0

        duration_hours = float(np.ptp(times)) / 3600.0
        drift_speed = distance_km / duration_hours if duration_hours > 0 else None

        return TrajectorySummary(
            index=trajectory.index,
            point_count=len(points),
            distance_km=distance_km,
            duration_hours=duration_hours,
            drift_speed_kmh=drift_speed,
            altitude=AltitudeStats(
                mean=float(np.mean(alts)),
                min_val=float(np.min(alts)),
                max_val=float(np.max(alts)),
                std=float(np.std(alts)),
            ),
        )

    def summarize_all(self, trajectories: Sequence[Trajectory]) -> List[TrajectorySummary]:
        return [self.summarize(t) for t in trajectories if t.points]

    def fleet_summary(self, dataset: Sequence[TimestampedPosition]) -> dict:
        """
        Aggregate statistics across the balloons in the newest snapshot.

        Returns summary metrics for the entire observable fleet.
        """
        groups = group_by_timestamp(dataset)
        current = groups[ordered_timestamps(groups)[0]] if groups else []

        if not current:
            return {
                'balloon_count': 0,
                'snapshot_count': len(groups),
                'latest_timestamp': None,
                'altitude': None,
            }

        altitudes = np.array([p.altitude for p in current], dtype=np.float64)

        return {
            'balloon_count': len(current),
            'snapshot_count': len(groups),
            'latest_timestamp': current[0].timestamp.isoformat(timespec='milliseconds'),
            'altitude': {
                'mean': float(np.mean(altitudes)),
                'min': float(np.min(altitudes)),
                'max': float(np.max(altitudes)),
                'std': float(np.std(altitudes)),
            },
        }
