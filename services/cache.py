# services/cache.py - In-memory cache of calendar snapshots with TTL
import threading
import time
from typing import Any, Hashable, Optional


class SnapshotCache:
    """
    Simple in-memory cache with TTL (time-to-live), keyed by calendar.

    Keys are tuples starting with the calendar id. Every invalidation bumps
    the calendar's generation; a value loaded under an older generation is
    not stored.
    """

    def __init__(self):
        self._cache = {}
        self._generations = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._cache)

    def get(self, key: Hashable) -> Optional[Any]:
        """Get value from cache if not expired"""
        with self._lock:
            if key in self._cache:
                value, expires_at = self._cache[key]
                if time.time() < expires_at:
                    return value
                del self._cache[key]
        return None

    def generation(self, calendar_id: int) -> int:
        with self._lock:
            return self._generations.get(calendar_id, 0)

    def set(self, key: Hashable, value: Any, ttl_seconds: int = 300, generation: Optional[int] = None) -> bool:
        """
        Set value in cache with TTL (default 5 minutes).

        Returns False without storing when the calendar was invalidated after
        `generation` was read.
        """
        now = time.time()
        with self._lock:
            if generation is not None and self._generations.get(key[0], 0) != generation:
                return False
            self._purge_expired(now)
            self._cache[key] = (value, now + ttl_seconds)
        return True

    def _purge_expired(self, now: float):
        expired = [key for key, (_, expires_at) in self._cache.items() if expires_at <= now]
        for key in expired:
            del self._cache[key]

    def invalidate_calendar(self, calendar_id: int) -> int:
        """Drop every snapshot of a calendar"""
        with self._lock:
            self._generations[calendar_id] = self._generations.get(calendar_id, 0) + 1
            stale = [key for key in self._cache if isinstance(key, tuple) and key and key[0] == calendar_id]
            for key in stale:
                del self._cache[key]
        return len(stale)

    def clear(self):
        """Clear all cached values"""
        with self._lock:
            self._cache = {}
            self._generations = {}


# Global cache instance
snapshot_cache = SnapshotCache()
