"""
API module for BalloonWatch.

Provides REST endpoints for:
- Balloon snapshots, history and trajectories
- Weather at a point
- System status
"""

from backend.api.balloons import balloons_bp
from backend.api.status import status_bp
from backend.api.weather import weather_bp

__all__ = ['balloons_bp', 'status_bp', 'weather_bp']
