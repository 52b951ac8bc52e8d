from property_weather_search.cache import WeatherCache
from property_weather_search.models import WeatherReading


class _Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


READING = WeatherReading(temperature=21.5, humidity=40.0, weather_code=0)


def test_cache_round_trip_before_ttl():
    clock = _Clock()
    cache = WeatherCache(clock=clock)
    cache.set("1.0000,2.0000", READING, ttl=60)
    assert cache.get("1.0000,2.0000") == READING
    clock.now += 60
    assert cache.get("1.0000,2.0000") == READING


def test_cache_expired_read_is_miss_and_evicts():
    clock = _Clock()
    cache = WeatherCache(clock=clock)
    cache.set("k", READING, ttl=60)
    clock.now += 60.5
    assert cache.get("k") is None
    assert len(cache) == 0
    stats = cache.stats()
    assert stats["misses"] == 1
    assert stats["hits"] == 0


def test_cache_set_overwrites_and_refreshes_expiry():
    clock = _Clock()
    cache = WeatherCache(clock=clock)
    cache.set("k", READING, ttl=10)
    clock.now += 8
    newer = WeatherReading(temperature=5.0, humidity=90.0, weather_code=61)
    cache.set("k", newer, ttl=10)
    clock.now += 8
    assert cache.get("k") == newer


def test_cache_default_ttl_used_when_none():
    clock = _Clock()
    cache = WeatherCache(default_ttl=5, clock=clock)
    cache.set("k", READING)
    clock.now += 6
    assert cache.get("k") is None


def test_cache_eviction_when_full():
    clock = _Clock()
    cache = WeatherCache(max_entries=2, clock=clock)
    cache.set("a", READING, ttl=10)
    cache.set("b", READING, ttl=60)
    cache.set("c", READING, ttl=60)
    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.stats()["evictions"] == 1


def test_cache_disabled_never_stores():
    cache = WeatherCache(enabled=False)
    cache.set("k", READING, ttl=60)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_cache_clear_resets_stats():
    cache = WeatherCache()
    cache.set("k", READING, ttl=60)
    cache.get("k")
    cache.get("missing")
    cache.clear()
    assert len(cache) == 0
    assert cache.stats() == {"hits": 0, "misses": 0, "evictions": 0}
