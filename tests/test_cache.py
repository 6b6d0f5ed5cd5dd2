from conftest import make_record
from flightxp.cache import FlightCache, cache_key
from flightxp.normalizer import normalize
from flightxp.stores import InMemoryCacheStore


def _flight():
    return normalize(make_record("aerodatabox"))


def test_cache_key_format():
    assert cache_key("QP1457", "2024-03-01") == "QP1457_2024-03-01"


def test_put_then_get_returns_equal_record(cache):
    flight = _flight()
    cache.put(flight)
    assert cache.get("QP1457", "2024-03-01") == flight
    assert cache.get("QP1457", "2024-03-02") is None


def test_expired_entry_is_a_miss(clock):
    cache = FlightCache(InMemoryCacheStore(), ttl_seconds=3600, clock=clock)
    cache.put(_flight())
    clock.advance(minutes=59)
    assert cache.get("QP1457", "2024-03-01") is not None
    clock.advance(minutes=2)
    assert cache.get("QP1457", "2024-03-01") is None


def test_per_entry_ttl_overrides_default(cache, clock):
    cache.put(_flight(), ttl_seconds=60)
    clock.advance(seconds=61)
    assert cache.get("QP1457", "2024-03-01") is None


def test_corrupt_entry_is_dropped(clock):
    store = InMemoryCacheStore()
    cache = FlightCache(store, clock=clock)
    store.set("QP1457_2024-03-01", "{not json")
    assert cache.get("QP1457", "2024-03-01") is None
    assert store.get("QP1457_2024-03-01") is None


def test_invalidate(cache):
    cache.put(_flight())
    cache.invalidate("QP1457", "2024-03-01")
    assert cache.get("QP1457", "2024-03-01") is None
