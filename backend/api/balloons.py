"""
Balloon data API endpoints.

Provides endpoints for:
- GET /api/balloon?hour=HH - One hourly snapshot, proxied from the feed
- GET /api/balloon/history - Recent positions with snapshot timestamps
- GET /api/balloon/trajectories - Current positions and per-balloon paths
"""

import logging
import time

from flask import Blueprint, current_app, jsonify, request

from backend.analytics import TrajectoryAnalyzer, build_trajectories, current_positions
from backend.analytics.trajectories import group_by_timestamp, ordered_timestamps
from backend.config import config

logger = logging.getLogger(__name__)

balloons_bp = Blueprint('balloons', __name__, url_prefix='/api/balloon')


def _parse_hour_arg(name: str, default: str):
    """
    Parse an hour query parameter into an int in 0-23.

    Returns (hour, None) or (None, error_response).
    """
    raw = request.args.get(name) or default
    try:
        hour = int(raw)
    except (TypeError, ValueError):
        return None, (jsonify({'error': f'{name} must be an integer between 0 and 23'}), 400)

    if not 0 <= hour <= config.feed.max_hour_offset:
        return None, (jsonify({'error': f'{name} must be between 0 and 23'}), 400)

    return hour, None


@balloons_bp.route('', methods=['GET'])
def get_hour():
    """
    Proxy one hourly snapshot.

    Query parameters:
    - hour: zero-padded hour offset, 00 (latest) to 23 (default 00)

    Returns a JSON array of {latitude, longitude, altitude}, possibly
    empty. Upstream failures return {error} with the upstream status,
    or {error, hour} with 500.
    """
    hour, error = _parse_hour_arg('hour', '00')
    if error:
        return error

    client = current_app.config['TREASURE_CLIENT']
    result = client.get_hour(hour)

    return jsonify(result.to_payload()), result.status_code


@balloons_bp.route('/history', methods=['GET'])
def get_history():
    """
    Get recent balloon positions, newest first.

    Query parameters:
    - hours: how far back the aggregation may look (default 23)

    Served from cache for up to a minute after each aggregation.
    """
    start_time = time.perf_counter()

    hours, error = _parse_hour_arg('hours', str(config.history.default_hours_back))
    if error:
        return error

    aggregator = current_app.config['HISTORY_AGGREGATOR']
    data = aggregator.get_history(hours)

    query_time_ms = (time.perf_counter() - start_time) * 1000
    logger.debug(f'History request served {len(data)} positions in {query_time_ms:.1f}ms')

    return jsonify([p.to_dict() for p in data])


@balloons_bp.route('/trajectories', methods=['GET'])
def get_trajectories():
    """
    Get current balloon positions and their trajectories.

    Balloons are identified by position index within each snapshot.
    Response includes per-balloon summaries and fleet statistics.
    """
    start_time = time.perf_counter()

    aggregator = current_app.config['HISTORY_AGGREGATOR']
    data = aggregator.get_history()

    trajectories = build_trajectories(data)
    analyzer = TrajectoryAnalyzer()

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'current': [p.to_dict() for p in current_positions(data)],
        'timestamps': [
            ts.isoformat(timespec='milliseconds')
            for ts in ordered_timestamps(group_by_timestamp(data))
        ],
        'trajectories': [t.to_dict() for t in trajectories],
        'summary': {
            'fleet': analyzer.fleet_summary(data),
            'balloons': [s.to_dict() for s in analyzer.summarize_all(trajectories)],
        },
        'query_time_ms': round(query_time_ms, 2),
    })
