"""
Weather API endpoint.

- GET /api/weather?lat=..&lon=.. - Current conditions at a point
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from backend.exceptions import WeatherUnavailable

logger = logging.getLogger(__name__)

weather_bp = Blueprint('weather', __name__, url_prefix='/api/weather')


@weather_bp.route('', methods=['GET'])
def get_weather():
    """
    Get current weather at a balloon position.

    Returns temperature (°C), wind speed (km/h), wind direction
    (degrees) and precipitation (mm).
    """
    lat = request.args.get('lat')
    lon = request.args.get('lon')

    if lat is None or lon is None:
        return jsonify({'error': 'lat and lon required'}), 400

    try:
        lat = float(lat)
        lon = float(lon)
    except (ValueError, TypeError):
        return jsonify({'error': 'Invalid latitude or longitude'}), 400

    # Validate ranges
    if not (-90 <= lat <= 90):
        return jsonify({'error': 'Latitude must be between -90 and 90'}), 400
    if not (-180 <= lon <= 180):
        return jsonify({'error': 'Longitude must be between -180 and 180'}), 400

    service = current_app.config['WEATHER_SERVICE']
    try:
        report = service.get_current(lat, lon)
    except WeatherUnavailable as e:
        logger.warning(f'Weather lookup failed for ({lat}, {lon}): {e}')
        return jsonify({'error': 'Weather data temporarily unavailable'}), 502

    return jsonify(report.to_dict())
