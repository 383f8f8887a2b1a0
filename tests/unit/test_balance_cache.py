"""
Unit tests for the balance lookup memo.

Run: pytest tests/unit/test_balance_cache.py -v
"""

from datetime import datetime, timedelta, timezone

from models.balance import BalanceReading
from models.sync import LookupResult
from services.balance_cache import BalanceLookupCache


def _result(found: bool) -> LookupResult:
    reading = BalanceReading(found=True, quantity=2) if found else BalanceReading.failed("Product not found in SIGE")
    return LookupResult(query="ABC", found=found, reading=reading)


class FrozenClockCache(BalanceLookupCache):
    """Cache with a clock the test moves by hand."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> datetime:
        return self.now


class TestBalanceLookupCache:

    def test_found_and_not_found_have_different_ttls(self):
        # Arrange
        cache = FrozenClockCache(ttl_found_seconds=300, ttl_not_found_seconds=120)
        cache.put("hit", _result(True))
        cache.put("miss", _result(False))

        # Act
        cache.now += timedelta(seconds=121)

        # Assert
        assert cache.get("hit") is not None
        assert cache.get("miss") is None

        cache.now += timedelta(seconds=180)
        assert cache.get("hit") is None

    def test_zero_ttl_disables_caching(self):
        cache = BalanceLookupCache(ttl_found_seconds=0, ttl_not_found_seconds=0)

        cache.put("ABC", _result(True))

        assert len(cache) == 0

    def test_invalidate_and_clear(self):
        cache = BalanceLookupCache()
        cache.put("A", _result(True))
        cache.put("B", _result(False))

        cache.invalidate("A")
        cache.invalidate("missing")

        assert cache.get("A") is None
        assert cache.clear() == 1
        assert len(cache) == 0

    def test_put_drops_expired_entries(self):
        cache = FrozenClockCache(ttl_found_seconds=10, ttl_not_found_seconds=10)
        cache.put("old", _result(True))

        cache.now += timedelta(seconds=11)
        cache.put("new", _result(True))

        assert len(cache) == 1
