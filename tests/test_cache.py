from backend.cache import TrajectoryCache
from tests import NOW


def test_empty_cache_misses(clock):
    cache = TrajectoryCache(ttl_seconds=60, clock=clock)

    assert not cache.is_fresh()
    assert cache.get() is None
    assert cache.stats['misses'] == 1


def test_fresh_entry_returns_same_object(clock, positions):
    cache = TrajectoryCache(ttl_seconds=60, clock=clock)
    data = [p.stamped(NOW) for p in positions]

    cache.put(data)
    clock.advance(59.9)

    assert cache.is_fresh()
    assert cache.get() is data
    assert cache.stats['hits'] == 1


def test_entry_expires_after_ttl(clock, positions):
    cache = TrajectoryCache(ttl_seconds=60, clock=clock)
    cache.put([p.stamped(NOW) for p in positions])

    clock.advance(60)

    assert not cache.is_fresh()
    assert cache.get() is None


def test_put_replaces_slot(clock, positions):
    cache = TrajectoryCache(ttl_seconds=60, clock=clock)
    cache.put([positions[0].stamped(NOW)])
    clock.advance(30)

    replacement = [positions[1].stamped(NOW)]
    cache.put(replacement)
    clock.advance(45)

    assert cache.get() is replacement
    assert cache.age_seconds == 45


def test_clear(clock, positions):
    cache = TrajectoryCache(ttl_seconds=60, clock=clock)
    cache.put([positions[0].stamped(NOW)])

    cache.clear()

    assert cache.get() is None
    assert cache.stats['entries'] == 0


def test_default_clock_is_monotonic():
    cache = TrajectoryCache(ttl_seconds=60)

    cache.put([])

    assert cache.is_fresh()
    assert 0 <= cache.age_seconds < 60
