"""
TTL cache shared by every adapter.

The cache is an optimization only: an internal fault is logged and
reported as a miss, never raised to the caller.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .coalescer import RequestCoalescer
from .core import CacheEntry, DataCategory
from .ttl_policies import get_ttl_for_category

logger = logging.getLogger("cache.manager")


class CacheManager:
    """
    Mutex-guarded key -> (value, stored_at) map with per-key TTL.

    - `get` never returns a value older than its TTL
    - `get_or_fetch` coalesces concurrent misses on the same key
    - the clock is injectable so tests can advance time deterministically
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        enabled: bool = True,
        default_ttl: int = 300,
        coalesce_timeout: float = 30.0,
    ):
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._clock = clock
        self._enabled = enabled
        self._default_ttl = default_ttl
        self._coalescer = RequestCoalescer(timeout=coalesce_timeout)
        self._stats = {
            "hits": 0,
            "misses": 0,
            "expired": 0,
            "faults": 0,
            "stores": 0,
        }

    @property
    def enabled(self) -> bool:
        return self._enabled

    def get(self, key: str) -> Tuple[Any, bool]:
        """
        Look up a key.

        Returns:
            (value, True) on a fresh hit, (None, False) otherwise
        """
        if not self._enabled:
            return None, False
        try:
            with self._lock:
                entry = self._cache.get(key)
                if entry is None:
                    self._stats["misses"] += 1
                    return None, False
                now = self._clock()
                if entry.is_expired(now):
                    del self._cache[key]
                    self._stats["expired"] += 1
                    self._stats["misses"] += 1
                    logger.debug(f"CACHE EXPIRED: {key} [age={entry.age_seconds(now):.1f}s]")
                    return None, False
                self._stats["hits"] += 1
                logger.debug(f"CACHE HIT: {key} [age={entry.age_seconds(now):.1f}s]")
                return entry.value, True
        except Exception as e:
            self._record_fault("get", key, e)
            return None, False

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        category: DataCategory = DataCategory.MATCHES,
    ) -> bool:
        """
        Store a value. Returns False when the cache is disabled or faulted.
        """
        if not self._enabled:
            return False
        ttl = self._default_ttl if ttl is None else ttl
        if ttl <= 0:
            return False
        try:
            entry = CacheEntry(value=value, stored_at=self._clock(), ttl_seconds=ttl, category=category)
            with self._lock:
                self._cache[key] = entry
                self._stats["stores"] += 1
            return True
        except Exception as e:
            self._record_fault("set", key, e)
            return False

    def get_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Any],
        category: Optional[DataCategory] = None,
        ttl: Optional[float] = None,
        should_store: Callable[[Any], bool] = lambda value: True,
        ttl_for: Optional[Callable[[Any], float]] = None,
    ) -> Tuple[Any, bool]:
        """
        Return the cached value for `key` or fetch, store and return it.

        Args:
            key: Cache key
            fetch_fn: Called on a miss; its exceptions propagate and nothing is stored
            category: Selects the TTL policy when `ttl` is not given
            ttl: Explicit TTL in seconds
            should_store: Predicate deciding whether a fetched value is cacheable
            ttl_for: Derives the TTL from the fetched value, overriding `ttl`

        Returns:
            (value, cached) where cached is True for a cache hit
        """
        value, found = self.get(key)
        if found:
            return value, True

        logger.info(f"CACHE MISS: {key}")

        def fetch_and_store() -> Any:
            fetched = fetch_fn()
            if should_store(fetched):
                effective_ttl = ttl_for(fetched) if ttl_for is not None else ttl
                if effective_ttl is None:
                    effective_ttl = get_ttl_for_category(category, self._default_ttl)
                self.set(key, fetched, effective_ttl, category or DataCategory.MATCHES)
            return fetched

        return self._coalescer.run(key, fetch_and_store), False

    def invalidate(self, key: str) -> bool:
        """
        Invalidate a specific cache entry.

        Returns:
            True if entry was found and removed
        """
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                logger.info(f"Invalidated cache: {key}")
                return True
            return False

    def invalidate_pattern(self, pattern: str) -> int:
        """Invalidate every key containing `pattern`. Returns the count removed."""
        with self._lock:
            doomed = [k for k in self._cache if pattern in k]
            for key in doomed:
                del self._cache[key]
        if doomed:
            logger.info(f"Invalidated {len(doomed)} entries matching '{pattern}'")
        return len(doomed)

    def clear(self) -> int:
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.info(f"Cleared {count} cache entries")
        return count

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            lookups = self._stats["hits"] + self._stats["misses"]
            hit_rate = (self._stats["hits"] / lookups * 100) if lookups > 0 else 0
            return {
                "enabled": self._enabled,
                "entries": len(self._cache),
                **self._stats,
                "hit_rate_percent": round(hit_rate, 1),
                "coalescer": self._coalescer.get_stats(),
            }

    def _record_fault(self, action: str, key: str, error: Exception) -> None:
        with self._lock:
            self._stats["faults"] += 1
        logger.warning(f"Cache {action} failed for {key}, treating as miss: {error}")

