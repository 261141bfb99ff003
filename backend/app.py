"""
BalloonWatch Flask Application.

Main entry point for the web application. Initializes:
- Feed client and history aggregator
- Weather service
- Background cache refresh loop
- API routes

Usage:
    python -m backend.app

Or with gunicorn:
    gunicorn 'backend.app:create_app()'
"""

import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from backend.api import balloons_bp, status_bp, weather_bp
from backend.config import config
from backend.ingestion import HistoryAggregator, HistoryRefresher, TreasureClient
from backend.services import WeatherService

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    start_refresh: bool = True,
    treasure_client: Optional[TreasureClient] = None,
    aggregator: Optional[HistoryAggregator] = None,
    weather_service: Optional[WeatherService] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        start_refresh: Whether to start the background cache refresh loop.
                       Set to False for testing.
        treasure_client: Feed client (created from config if None)
        aggregator: History aggregator (created from config if None)
        weather_service: Weather service (created from config if None)

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    # Register API blueprints
    app.register_blueprint(balloons_bp)
    app.register_blueprint(weather_bp)
    app.register_blueprint(status_bp)

    app.config['TREASURE_CLIENT'] = treasure_client or TreasureClient.from_config()
    app.config['HISTORY_AGGREGATOR'] = aggregator or HistoryAggregator.from_config()
    app.config['WEATHER_SERVICE'] = weather_service or WeatherService()
    app.config['HISTORY_REFRESHER'] = None

    if start_refresh and config.refresh.enabled:
        refresher = HistoryRefresher(app.config['HISTORY_AGGREGATOR'])
        refresher.start_background()
        app.config['HISTORY_REFRESHER'] = refresher
        logger.info(f'History refresh every {refresher.interval}s')

    # -------------------------------------------------------------------------
    # Health and error handlers
    # -------------------------------------------------------------------------

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting BalloonWatch on http://localhost:{port}')
    logger.info(f'History: http://localhost:{port}/api/balloon/history')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
        use_reloader=False,  # Disable reloader to prevent duplicate refresh threads
    )


if __name__ == '__main__':
    run_development_server()
