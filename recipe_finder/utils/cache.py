"""
In-process TTL cache for upstream recipe API responses.

This module provides a small, lightweight cache for raw MealDB payloads
to avoid repeating identical upstream calls while keeping results fresh.

The cache is process-local and in-memory, with expiration based on TTL.
Staleness is the only eviction trigger: there is no capacity bound, so the
cache grows for the lifetime of the process. Entries are created on the first
miss, replaced on the first call after expiry, and never deleted explicitly.

The clock is injectable so tests can move time forward without sleeping.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from recipe_finder.constants import DEFAULT_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


def make_cache_key(kind: str, value: Optional[str] = None) -> str:
    """
    Create a deterministic cache key for an upstream query.

    Keys are namespaced by query kind so that, for example, a name search for
    "chicken" and a category filter for "Chicken" never collide.

    Args:
        kind: Query kind (e.g., "search", "category", "area", "lookup")
        value: Query parameter value, if the endpoint takes one

    Returns:
        Cache key string of the form "kind:value"

    Examples:
        >>> make_cache_key("category", "Chicken")
        'category:Chicken'
        >>> make_cache_key("categories")
        'categories:'
    """
    return f"{kind}:{value if value is not None else ''}"


class ResponseCache:
    """
    Key -> (fetch timestamp, value) store with a fixed time-to-live.

    An entry is fresh iff ``now - fetched_at < ttl_seconds``. Producer failures
    are never stored, so a failed fetch does not poison the cache and the next
    call starts from scratch.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.time
        # Hydration fans lookups out over a thread pool, so writes are guarded
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get_cached(self, key: str, producer: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, or produce, store and return it.

        Args:
            key: Cache key from make_cache_key()
            producer: Zero-argument callable performing the upstream fetch

        Returns:
            The fresh cached value, or whatever producer() returned

        Raises:
            Any exception raised by producer, without touching the cache
        """
        hit, value = self._lookup(key)
        if hit:
            logger.debug("Cache hit for %s", key)
            return value

        logger.debug("Cache miss for %s", key)
        value = producer()
        self.set(key, value)
        return value

    def _lookup(self, key: str) -> Tuple[bool, Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return False, None
        fetched_at, value = entry
        if now - fetched_at < self.ttl_seconds:
            return True, value
        return False, None

    def set(self, key: str, value: Any) -> None:
        """Store value under key with the current timestamp, replacing any prior entry."""
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def fetched_at(self, key: str) -> Optional[float]:
        """Timestamp of the stored entry for key, or None if nothing is stored."""
        with self._lock:
            entry = self._entries.get(key)
        return entry[0] if entry else None

    def clear(self) -> None:
        """Clear all cached responses (useful for testing)."""
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Get the current number of cached entries (useful for monitoring)."""
        with self._lock:
            return len(self._entries)
