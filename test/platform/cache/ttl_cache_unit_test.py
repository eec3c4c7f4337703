import pytest

from src.platform.cache.ttl_cache import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.mark.unit
class TestTTLCache:
    @pytest.fixture
    def clock(self) -> FakeClock:
        return FakeClock()

    @pytest.fixture
    def cache(self, clock: FakeClock) -> TTLCache[str, int]:
        return TTLCache(name='test', ttl_seconds=60, clock=clock)

    def test_entry_visible_until_expiry(self, cache: TTLCache[str, int], clock: FakeClock) -> None:
        cache.set('a', 1)

        clock.advance(59)
        assert cache.get('a') == 1

        clock.advance(1)
        assert cache.get('a') is None

    def test_read_evicts_expired_entry(self, cache: TTLCache[str, int], clock: FakeClock) -> None:
        """
        Given: An entry past its expiry
        When: It is read
        Then: The default comes back and the entry is gone from storage
        """
        cache.set('a', 1)
        clock.advance(120)

        assert cache.get('a', -1) == -1
        assert len(cache) == 0

    def test_per_entry_ttl_override(self, cache: TTLCache[str, int], clock: FakeClock) -> None:
        cache.set('short', 1, ttl_seconds=5)
        cache.set('long', 2)
        clock.advance(10)

        assert 'short' not in cache
        assert 'long' in cache

    def test_add_if_absent_only_once_per_ttl(
        self, cache: TTLCache[str, int], clock: FakeClock
    ) -> None:
        assert cache.add_if_absent('evt-1', 1) is True
        assert cache.add_if_absent('evt-1', 1) is False

        clock.advance(61)
        assert cache.add_if_absent('evt-1', 1) is True

    def test_sweep_evicts_only_expired(self, cache: TTLCache[str, int], clock: FakeClock) -> None:
        cache.set('old', 1)
        clock.advance(30)
        cache.set('new', 2)
        clock.advance(40)

        evicted = cache.sweep()

        assert evicted == 1
        assert len(cache) == 1
        assert cache.get('new') == 2

    def test_delete_and_clear(self, cache: TTLCache[str, int]) -> None:
        cache.set('a', 1)
        cache.set('b', 2)

        cache.delete('a')
        cache.delete('missing')
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0
