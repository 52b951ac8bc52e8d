import time

from .models import WeatherReading


class WeatherCache:
    """Expiring key/value store for weather readings.

    Expiry is checked lazily on read: a stale entry is evicted by the `get`
    that finds it. With `max_entries` set, inserting into a full cache evicts
    the entry that expires first.
    """

    def __init__(self, default_ttl=3600.0, max_entries=None, clock=time.time, enabled=True):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.enabled = enabled
        self._clock = clock
        self._entries = {}
        self._stats = {"hits": 0, "misses": 0, "evictions": 0}

    def __len__(self):
        return len(self._entries)

    def get(self, key) -> WeatherReading | None:
        if not self.enabled:
            return None
        entry = self._entries.get(key)
        if not entry:
            self._stats["misses"] += 1
            return None
        expires_at, value = entry
        if self._clock() > expires_at:
            self._entries.pop(key, None)
            self._stats["misses"] += 1
            return None
        self._stats["hits"] += 1
        return value

    def set(self, key, data: WeatherReading, ttl=None):
        if not self.enabled:
            return
        if (
            self.max_entries
            and key not in self._entries
            and len(self._entries) >= self.max_entries
        ):
            oldest_key = min(self._entries.items(), key=lambda item: item[1][0])[0]
            self._entries.pop(oldest_key, None)
            self._stats["evictions"] += 1
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (self._clock() + ttl, data)

    def clear(self):
        self._entries.clear()
        self._stats["hits"] = 0
        self._stats["misses"] = 0
        self._stats["evictions"] = 0

    def stats(self):
        return dict(self._stats)
