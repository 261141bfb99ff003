"""
Analytics module for BalloonWatch.

Reconstructs per-balloon trajectories from the aggregated dataset and
computes summary statistics with NumPy.
"""

from backend.analytics.trajectories import (
    Trajectory,
    TrajectoryAnalyzer,
    TrajectorySummary,
    build_trajectories,
    current_positions,
    group_by_timestamp,
)

__all__ = [
    'Trajectory',
    'TrajectoryAnalyzer',
    'TrajectorySummary',
    'build_trajectories',
    'current_positions',
    'group_by_timestamp',
]
