"""
System status endpoint.

- GET /api/status - Aggregator, cache, feed client and refresher state
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from backend.config import config

status_bp = Blueprint('status', __name__, url_prefix='/api/status')


@status_bp.route('', methods=['GET'])
def get_system_status():
    """
    Get system health and status information.

    The service is 'healthy' when the cache holds fresh data and
    'degraded' otherwise.
    """
    aggregator = current_app.config['HISTORY_AGGREGATOR']
    client = current_app.config['TREASURE_CLIENT']
    weather = current_app.config['WEATHER_SERVICE']
    refresher = current_app.config.get('HISTORY_REFRESHER')

    aggregator_stats = aggregator.stats

    return jsonify({
        'status': 'healthy' if aggregator_stats['cache']['fresh'] else 'degraded',
        'history': aggregator_stats,
        'feed': client.stats,
        'weather': weather.stats,
        'refresh': refresher.stats if refresher else {'running': False},
        'config': {
            'feed_base_url': config.feed.base_url,
            'candidate_hours': list(config.history.candidate_hours),
            'cache_ttl_seconds': config.history.cache_ttl_seconds,
            'source_url': config.history.source_url,
        },
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
