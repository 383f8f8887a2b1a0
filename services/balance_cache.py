"""
In-memory memo for single-SKU balance lookups.

Entries expire after a TTL that depends on whether the lookup found the
product. One instance per ReconciliationService; single-process only.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from models.sync import LookupResult


class BalanceLookupCache:

    def __init__(self, ttl_found_seconds: int = 300, ttl_not_found_seconds: int = 120):
        self.ttl_found = timedelta(seconds=ttl_found_seconds)
        self.ttl_not_found = timedelta(seconds=ttl_not_found_seconds)
        self._entries: dict[str, tuple[datetime, LookupResult]] = {}

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def get(self, key: str) -> Optional[LookupResult]:
        """Cached result, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, result = entry
        if self._now() >= expires_at:
            del self._entries[key]
            return None
        return result

    def put(self, key: str, result: LookupResult) -> None:
        ttl = self.ttl_found if result.found else self.ttl_not_found
        if ttl.total_seconds() <= 0:
            return
        self._entries[key] = (self._now() + ttl, result)
        self._cleanup_expired()

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> int:
        """Drop everything. Returns the number of entries removed."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def _cleanup_expired(self) -> None:
        now = self._now()
        expired = [k for k, (exp, _) in self._entries.items() if now >= exp]
        for k in expired:
            del self._entries[k]
