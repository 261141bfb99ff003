import pytest
import requests

from backend.exceptions import RetriesExhausted
from backend.ingestion.retry import call_with_retry, fetch_with_retry
from tests import FakeResponse, FakeSession


def test_succeeds_after_transient_failure(sleeps, record_sleep):
    outcomes = [requests.ConnectionError('reset'), 'ok']

    def flaky():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    assert call_with_retry(flaky, 3, backoff_seconds=1.0, sleep=record_sleep) == 'ok'
    assert sleeps == [1.0]


def test_linear_backoff_then_exhaustion(sleeps, record_sleep):
    calls = []
    last = requests.Timeout('third')

    def always_fails():
        calls.append(1)
        if len(calls) == 3:
            raise last
        raise requests.ConnectionError('down')

    with pytest.raises(RetriesExhausted) as excinfo:
        call_with_retry(always_fails, 3, backoff_seconds=1.0, sleep=record_sleep)

    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]
    assert excinfo.value.attempts == 3
    assert excinfo.value.__cause__ is last
    assert 'Failed to fetch after 3 retries' in str(excinfo.value)


def test_unlisted_errors_propagate_immediately(sleeps, record_sleep):
    calls = []

    def broken():
        calls.append(1)
        raise KeyError('bug')

    with pytest.raises(KeyError):
        call_with_retry(broken, 3, backoff_seconds=1.0, sleep=record_sleep)

    assert len(calls) == 1
    assert sleeps == []


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        call_with_retry(lambda: None, 0)


def test_error_status_returned_without_retry(sleeps, record_sleep):
    session = FakeSession(FakeResponse(503))

    response = fetch_with_retry(
        'https://example.test/feed', 2, session=session, backoff_seconds=1.0, sleep=record_sleep,
    )

    assert response.status_code == 503
    assert len(session.calls) == 1
    assert sleeps == []


def test_error_status_retried_when_requested(sleeps, record_sleep):
    session = FakeSession(FakeResponse(500), FakeResponse(200, json_data={'ok': True}))

    response = fetch_with_retry(
        'https://example.test/weather',
        3,
        session=session,
        retry_on_status=True,
        backoff_seconds=1.0,
        sleep=record_sleep,
        params={'latitude': 1},
    )

    assert response.json() == {'ok': True}
    assert len(session.calls) == 2
    assert session.calls[0][1]['params'] == {'latitude': 1}
    assert 'timeout' in session.calls[0][1]
    assert sleeps == [1.0]


def test_network_errors_exhaust(sleeps, record_sleep):
    session = FakeSession(requests.ConnectionError('a'), requests.ConnectionError('b'))

    with pytest.raises(RetriesExhausted):
        fetch_with_retry(
            'https://example.test/feed', 2, session=session, backoff_seconds=1.0, sleep=record_sleep,
        )

    assert sleeps == [1.0]
