from clawkalash.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_entry_expires_lazily():
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set("usdc", ["row"])

    clock.now = 59.9
    assert cache.get("usdc") == ["row"]

    clock.now = 60.0
    assert cache.size() == 1
    assert cache.get("usdc") is None
    assert cache.size() == 0


def test_last_write_wins():
    cache = TTLCache(default_ttl=60, clock=FakeClock())
    cache.set("eth", 1)
    cache.set("eth", 2)

    assert cache.get("eth") == 2


def test_evicts_least_recently_used():
    cache = TTLCache(default_ttl=60, max_size=2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3


def test_entry_records_fetch_time():
    clock = FakeClock()
    clock.now = 12.0
    cache = TTLCache(default_ttl=5, clock=clock)
    cache.set("q", "v", ttl=30)

    entry = cache.get_entry("q")
    assert entry.fetched_at == 12.0
    assert entry.expires_at == 42.0
