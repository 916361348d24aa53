"""
Caching Utilities
=================
In-memory TTL cache with LRU eviction for TMDB list/search responses.

Each TMDBService owns its own CacheStore. Details endpoints are never
cached.

Usage:
    class Client:
        def __init__(self):
            self.cache_store = CacheStore(max_size=500)

        @cached_method(ttl=300)  # Cache for 5 minutes
        def search(self, query, page=1):
            ...
"""
from functools import wraps
from typing import Any, Callable, Optional
from collections import OrderedDict
from datetime import datetime, timedelta
import hashlib
import json
import threading
import logging

logger = logging.getLogger(__name__)


class CacheStore:
    """
    Simple in-memory cache with TTL and LRU eviction.
    Per-process only; every worker keeps its own copy.
    """

    def __init__(self, max_size: int = 1000):
        self._cache: OrderedDict = OrderedDict()
        self._max_size = max_size
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(func_name: str, args: tuple, kwargs: dict) -> str:
        """Stable key from a function name and its arguments"""
        key_data = {
            'func': func_name,
            'args': args,
            'kwargs': sorted(kwargs.items())
        }
        key_str = json.dumps(key_data, sort_keys=True, default=str)
        return hashlib.md5(key_str.encode()).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when missing or expired"""
        with self._lock:
            if key not in self._cache:
                self._misses += 1
                return None

            value, expiry = self._cache[key]
            if expiry and datetime.now() > expiry:
                del self._cache[key]
                self._misses += 1
                return None

            self._cache.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value; ttl in seconds, None means no expiration"""
        expiry = datetime.now() + timedelta(seconds=ttl) if ttl else None
        with self._lock:
            self._cache[key] = (value, expiry)
            self._cache.move_to_end(key)

            if len(self._cache) > self._max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                logger.debug(f"Evicted cache key: {oldest_key}")

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
        logger.info("Cache cleared")

    def get_stats(self) -> dict:
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

        return {
            'size': len(self._cache),
            'max_size': self._max_size,
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': f"{hit_rate:.2f}%"
        }


def cached_method(ttl: int = 300):
    """
    Cache a method's result in the instance's `cache_store`.

    Args:
        ttl: Time to live in seconds (default: 300 = 5 minutes)

    Only use on methods with JSON-friendly arguments.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            store: CacheStore = self.cache_store
            cache_key = store.make_key(func.__qualname__, args, kwargs)

            cached_value = store.get(cache_key)
            if cached_value is not None:
                logger.debug(f"Cache hit for {func.__qualname__}")
                return cached_value

            logger.debug(f"Cache miss for {func.__qualname__}")
            result = func(self, *args, **kwargs)
            store.set(cache_key, result, ttl)
            return result

        return wrapper

    return decorator
