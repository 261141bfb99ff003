import pytest

from backend.cache import TrajectoryCache
from backend.ingestion.aggregator import HistoryAggregator
from backend.models.position import PositionRecord
from tests import NOW, FakeHourSource


class FakeClock:
    """Settable clock returning seconds since the epoch."""

    def __init__(self, start=NOW.timestamp()):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def record_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def positions():
    return [
        PositionRecord(latitude=10.5, longitude=-20.25, altitude=15.0),
        PositionRecord(latitude=-33.9, longitude=151.2, altitude=8.7),
    ]


@pytest.fixture
def source() -> FakeHourSource:
    return FakeHourSource()


@pytest.fixture
def aggregator(source, clock, record_sleep) -> HistoryAggregator:
    return HistoryAggregator(
        source=source,
        cache=TrajectoryCache(ttl_seconds=60, clock=clock),
        candidate_hours=(0, 1, 2, 3),
        politeness_delay=0.2,
        now=lambda: NOW,
        sleep=record_sleep,
    )
