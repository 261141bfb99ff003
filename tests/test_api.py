import pytest
import requests

from backend.app import create_app
from backend.ingestion.treasure_client import TreasureClient
from backend.services.weather import WeatherService
from tests import FakeResponse, FakeSession


@pytest.fixture
def feed_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def weather_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def app(aggregator, feed_session, weather_session):
    app = create_app(
        start_refresh=False,
        treasure_client=TreasureClient(base_url='https://feed.test', session=feed_session),
        aggregator=aggregator,
        weather_service=WeatherService(
            base_url='https://weather.test/v1',
            max_attempts=1,
            session=weather_session,
        ),
    )
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def test_hour_proxy(client, feed_session):
    feed_session.outcomes.append(FakeResponse(200, text='[[1, 2, 3], [4, 5, "x"]]'))

    response = client.get('/api/balloon?hour=05')

    assert response.status_code == 200
    assert response.get_json() == [{'latitude': 1.0, 'longitude': 2.0, 'altitude': 3.0}]
    assert feed_session.calls[0][0] == 'https://feed.test/treasure/05.json'


def test_hour_defaults_to_latest(client, feed_session):
    feed_session.outcomes.append(FakeResponse(200, text='<!DOCTYPE html>'))

    response = client.get('/api/balloon')

    assert response.status_code == 200
    assert response.get_json() == []
    assert feed_session.calls[0][0] == 'https://feed.test/treasure/00.json'


def test_hour_mirrors_upstream_status(client, feed_session):
    feed_session.outcomes.append(FakeResponse(404))

    response = client.get('/api/balloon?hour=07')

    assert response.status_code == 404
    assert response.get_json() == {'error': 'Failed to fetch balloon data: 404'}


def test_hour_exception_is_500(client, feed_session):
    feed_session.outcomes.append(requests.ConnectionError('unreachable'))

    response = client.get('/api/balloon?hour=12')

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to fetch balloon data', 'hour': '12'}


@pytest.mark.parametrize('hour', ['abc', '24', '-1'])
def test_hour_validation(client, feed_session, hour):
    response = client.get(f'/api/balloon?hour={hour}')

    assert response.status_code == 400
    assert 'error' in response.get_json()
    assert feed_session.calls == []


def test_history(client, source, positions):
    source.hours[1] = positions

    response = client.get('/api/balloon/history')

    assert response.status_code == 200
    body = response.get_json()
    assert len(body) == 2
    assert body[0]['timestamp'] == '2024-11-20T11:00:00.000+00:00'


def test_history_empty_is_ok(client):
    response = client.get('/api/balloon/history?hours=3')

    assert response.status_code == 200
    assert response.get_json() == []


def test_trajectories(client, source, positions):
    source.hours[0] = positions

    body = client.get('/api/balloon/trajectories').get_json()

    assert len(body['current']) == 2
    assert body['timestamps'] == ['2024-11-20T12:00:00.000+00:00']
    assert [len(t['points']) for t in body['trajectories']] == [1, 1]
    assert body['summary']['fleet']['balloon_count'] == 2


def test_weather(client, weather_session):
    weather_session.outcomes.append(FakeResponse(200, json_data={
        'current': {
            'temperature_2m': 3.2,
            'wind_speed_10m': 10.0,
            'wind_direction_10m': 45,
            'precipitation': 0.4,
        },
    }))

    response = client.get('/api/weather?lat=0&lon=0')

    assert response.status_code == 200
    assert response.get_json() == {
        'temperature': 3.2,
        'wind_speed': 10.0,
        'wind_direction': 45,
        'precipitation': 0.4,
    }


@pytest.mark.parametrize('query', ['', '?lat=1', '?lat=abc&lon=1', '?lat=91&lon=0', '?lat=0&lon=-181'])
def test_weather_validation(client, query):
    assert client.get(f'/api/weather{query}').status_code == 400


def test_weather_unavailable(client, weather_session):
    weather_session.outcomes.append(FakeResponse(503))

    response = client.get('/api/weather?lat=10&lon=20')

    assert response.status_code == 502
    assert response.get_json() == {'error': 'Weather data temporarily unavailable'}


def test_status_and_health(client):
    assert client.get('/health').get_json() == {'status': 'ok'}

    body = client.get('/api/status').get_json()
    assert body['status'] == 'degraded'
    assert body['refresh'] == {'running': False}
    assert body['history']['candidate_hours'] == [0, 1, 2, 3]


def test_not_found_is_json(client):
    response = client.get('/nope')

    assert response.status_code == 404
    assert response.get_json() == {'error': 'Not found'}


def test_cors_headers(client, feed_session):
    feed_session.outcomes.append(FakeResponse(200, text='[]'))

    response = client.get('/api/balloon', headers={'Origin': 'http://map.test'})

    # flask-cors 6 echoes the request origin, earlier releases send '*'
    assert response.headers['Access-Control-Allow-Origin'] in ('*', 'http://map.test')


def test_empty_hour_defaults_to_latest(client, feed_session):
    feed_session.outcomes.append(FakeResponse(200, text='[]'))

    response = client.get('/api/balloon?hour=')

    assert response.status_code == 200
    assert feed_session.calls[0][0] == 'https://feed.test/treasure/00.json'


def test_redirect_status_is_mirrored(client, feed_session):
    feed_session.outcomes.append(FakeResponse(302))

    response = client.get('/api/balloon?hour=01')

    assert response.status_code == 302
    assert response.get_json() == {'error': 'Failed to fetch balloon data: 302'}
