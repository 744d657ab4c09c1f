"""
In-process TTL cache for derived read models.

Only aggregates that can be rebuilt from the database live here. The stock
summary is the main one: ledger postings and retractions clear every key
under ``CacheKeys.STOCK``.
"""
import logging
import threading
import time
from typing import Any, NamedTuple, Optional

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    value: Any
    expires_at: float


class SimpleCache:
    """Thread-safe dict cache with per-key TTL and a bounded size."""

    MAX_ENTRIES = 1000

    def __init__(self):
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.expires_at <= time.monotonic():
                self._entries.pop(key, None)
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: int = 300) -> None:
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.MAX_ENTRIES:
                self._make_room()
            self._entries[key] = _Entry(value, time.monotonic() + ttl_seconds)

    def clear_prefix(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``. Returns how many were dropped."""
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug(f"Cache cleared {len(doomed)} keys under '{prefix}'")
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict:
        now = time.monotonic()
        with self._lock:
            live = sum(1 for e in self._entries.values() if e.expires_at > now)
            return {
                "entries": len(self._entries),
                "live": live,
                "hits": self._hits,
                "misses": self._misses,
            }

    def _make_room(self) -> None:
        # Caller holds the lock
        now = time.monotonic()
        for key in [k for k, e in self._entries.items() if e.expires_at <= now]:
            del self._entries[key]
        if len(self._entries) >= self.MAX_ENTRIES:
            oldest = sorted(self._entries, key=lambda k: self._entries[k].expires_at)
            for key in oldest[: max(1, self.MAX_ENTRIES // 10)]:
                del self._entries[key]


cache = SimpleCache()


class CacheKeys:
    STOCK = "stock"
    STOCK_SUMMARY = "stock:summary"
