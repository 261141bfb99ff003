from datetime import datetime, timedelta, timezone

import requests

NOW = datetime(2024, 11, 20, 12, 0, 0, tzinfo=timezone.utc)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, text='', json_data=None):
        self.status_code = status_code
        self.text = text
        self._json_data = json_data

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._json_data is not None:
            return self._json_data
        raise ValueError('No JSON object could be decoded')

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f'{self.status_code} Error', response=self)


class FakeSession:
    """
    Replays a scripted list of outcomes for successive GET calls.

    Each outcome is a FakeResponse (returned) or an exception (raised).
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeHourSource:
    """
    Hour source returning scripted positions per hour offset.

    Values may be a list of PositionRecord or an exception to raise.
    Unscripted hours return no data.
    """

    def __init__(self, hours=None):
        self.hours = hours or {}
        self.calls = []

    def positions(self, hour_offset):
        self.calls.append(hour_offset)
        outcome = self.hours.get(hour_offset, [])
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def hours_ago(hours):
    return NOW - timedelta(hours=hours)
