"""
Simple caching utilities for performance optimization.

Provides a thread-safe TTL cache for expensive lookups like weather API
calls. Each owner keeps its own instance, so there is no process-wide cache.
"""

from __future__ import annotations
from cachetools import TTLCache
from typing import Callable, Any, Hashable
import threading

# Cache configuration constants
WEATHER_CACHE_TTL_SECONDS = 600  # 10 minutes - weather doesn't change fast
WEATHER_CACHE_MAX_ENTRIES = 64


class LockedTTLCache:
    """
    TTLCache guarded by a lock.

    Usage:
        cache = LockedTTLCache(ttl=600)
        snapshot = cache.get_or_set(("weather", city), lambda: fetch(city))
    """

    def __init__(self, ttl: int = WEATHER_CACHE_TTL_SECONDS, maxsize: int = WEATHER_CACHE_MAX_ENTRIES):
        self._cache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            return self._cache.get(key, default)

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._cache[key] = value

    def get_or_set(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """
        Return the cached value for ``key`` or compute and store it.

        The factory runs outside the lock; exceptions propagate and nothing
        is cached for that key.
        """
        with self._lock:
            if key in self._cache:
                return self._cache[key]

        result = factory()

        with self._lock:
            self._cache[key] = result

        return result

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
