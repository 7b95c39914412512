"""Bounded in-process caches shared by the analyzers"""
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Optional


class LRUCache:
    """
    Thread-safe LRU cache with TTL support

    Entries expire ``ttl`` seconds after they were written. When the cache is
    full, expired entries are swept first and then the least recently used
    entry is evicted, so memory stays bounded by ``max_size``.
    """

    def __init__(self, max_size: int = 1000, ttl: float = 3600,
                 time_func: Callable[[], float] = time.monotonic):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl = ttl
        self.time_func = time_func
        self.cache = OrderedDict()
        self.timestamps = {}
        self.lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Get item from cache, None when missing or expired"""
        with self.lock:
            if key in self.cache:
                if self.time_func() - self.timestamps[key] >= self.ttl:
                    self._remove(key)
                    self.misses += 1
                    return None

                self.cache.move_to_end(key)
                self.hits += 1
                return self.cache[key]

            self.misses += 1
            return None

    def contains(self, key: Hashable) -> bool:
        """True when key is cached and not expired"""
        return self.get(key) is not None

    def put(self, key: Hashable, value: Any):
        """Add item to cache"""
        with self.lock:
            current_time = self.time_func()

            if key in self.cache:
                self.cache[key] = value
                self.timestamps[key] = current_time
                self.cache.move_to_end(key)
                return

            if len(self.cache) >= self.max_size:
                self.purge_expired()
            if len(self.cache) >= self.max_size:
                oldest_key = next(iter(self.cache))
                self._remove(oldest_key)

            self.cache[key] = value
            self.timestamps[key] = current_time

    def purge_expired(self) -> int:
        """Drop every expired entry, return how many were removed"""
        with self.lock:
            current_time = self.time_func()
            expired = [
                key for key, stamp in self.timestamps.items()
                if current_time - stamp >= self.ttl
            ]
            for key in expired:
                self._remove(key)
            return len(expired)

    def _remove(self, key: Hashable):
        self.cache.pop(key, None)
        self.timestamps.pop(key, None)

    def clear(self):
        """Clear all cached items"""
        with self.lock:
            self.cache.clear()
            self.timestamps.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self.lock:
            return len(self.cache)

    def get_stats(self) -> Dict[str, float]:
        """Get cache statistics"""
        with self.lock:
            total_requests = self.hits + self.misses
            hit_rate = self.hits / total_requests if total_requests > 0 else 0.0

            return {
                'hits': self.hits,
                'misses': self.misses,
                'hit_rate': hit_rate,
                'size': len(self.cache),
                'max_size': self.max_size
            }
