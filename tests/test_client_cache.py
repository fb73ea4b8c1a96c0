from app.client.cache import ClientCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_entry_is_fresh_until_ttl_boundary():
    clock = FakeClock()
    cache = ClientCache(clock=clock)
    cache.set("courses", ["a"], ttl=300)

    clock.advance(300)
    assert cache.has("courses")
    assert cache.get("courses") == ["a"]
    assert not cache.is_stale("courses")

    clock.advance(0.001)
    assert not cache.has("courses")
    assert cache.get("courses") is None
    assert cache.is_stale("courses")


def test_expired_entry_stays_readable_as_stale():
    clock = FakeClock()
    cache = ClientCache(clock=clock)
    cache.set("course_1", {"id": "1"}, ttl=10)
    clock.advance(60)

    assert cache.get("course_1") is None
    assert cache.get_stale("course_1") == {"id": "1"}
    # A fresh read does not evict the stale copy.
    assert cache.get_stale("course_1") == {"id": "1"}


def test_default_ttl_applies_when_not_given():
    clock = FakeClock()
    cache = ClientCache(default_ttl=5, clock=clock)
    cache.set("featured_lessons", [])
    clock.advance(6)
    assert cache.is_stale("featured_lessons")


def test_overwrite_resets_expiry():
    clock = FakeClock()
    cache = ClientCache(clock=clock)
    cache.set("k", 1, ttl=10)
    clock.advance(20)
    cache.set("k", 2, ttl=10)
    assert cache.get("k") == 2
    assert not cache.is_stale("k")


def test_delete_and_clear_drop_stale_values():
    cache = ClientCache(clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)

    cache.delete("a")
    assert cache.get_stale("a") is None
    assert not cache.is_stale("a")
    cache.delete("missing")

    cache.clear()
    assert len(cache) == 0
    assert cache.get_stale("b") is None
