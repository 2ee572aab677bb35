from services.cache_service import ResponseCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_hit_and_miss_statistics():
    cache = ResponseCache(clock=FakeClock(), capacity=10, default_ttl=60)
    assert cache.get("sys", "user", "m") is None
    cache.set("sys", "user", "m", {"text": "hi"})
    assert cache.get("sys", "user", "m") == {"text": "hi"}

    stats = cache.get_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 0.5
    assert stats["total_entries"] == 1


def test_ttl_expiry_uses_injected_clock():
    clock = FakeClock()
    cache = ResponseCache(clock=clock, default_ttl=60)
    cache.set("s", "u", "m", {"text": "a"})
    cache.set("s", "u2", "m", {"text": "b"}, ttl_seconds=600)

    clock.now += 61
    assert cache.get("s", "u", "m") is None
    assert cache.get("s", "u2", "m") == {"text": "b"}


def test_zero_ttl_is_not_cached():
    cache = ResponseCache(clock=FakeClock())
    cache.set("s", "u", "m", {"text": "a"}, ttl_seconds=0)
    assert len(cache) == 0


def test_capacity_evicts_oldest_insert():
    cache = ResponseCache(clock=FakeClock(), capacity=2, default_ttl=60)
    cache.set("s", "1", "m", {"n": 1})
    cache.set("s", "2", "m", {"n": 2})
    cache.get("s", "1", "m")
    cache.set("s", "3", "m", {"n": 3})

    assert cache.get("s", "1", "m") is None
    assert cache.get("s", "2", "m") == {"n": 2}
    assert cache.get("s", "3", "m") == {"n": 3}


def test_clear_expired():
    clock = FakeClock()
    cache = ResponseCache(clock=clock, default_ttl=10)
    cache.set("s", "a", "m", {})
    cache.set("s", "b", "m", {}, ttl_seconds=100)
    clock.now += 11
    assert cache.clear_expired() == 1
    assert len(cache) == 1
