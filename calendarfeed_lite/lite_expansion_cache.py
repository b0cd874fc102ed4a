"""Window-keyed result cache for assembled feed events.

The cache is an explicit object owned by whoever fetches feeds; the decoder
and expander never consult it. Entries expire after a fixed time-to-live and
are keyed by feed and window, so a fresh fetch of one feed can drop just that
feed's windows.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

from cachetools import TTLCache

from .lite_models import LiteCalendarEvent

logger = logging.getLogger(__name__)

CacheKey = tuple[str, datetime, datetime]

DEFAULT_TTL_SECONDS = 120
DEFAULT_MAX_SIZE = 32


class _WindowTTLCache(TTLCache):
    """TTLCache that reports entries evicted to make room."""

    def __init__(self, maxsize: int, ttl: float, timer: Callable[[], float], on_evict: Callable[[Any], None]):
        super().__init__(maxsize=maxsize, ttl=ttl, timer=timer)
        self._on_evict = on_evict

    def popitem(self) -> tuple[Any, Any]:
        key, value = super().popitem()
        self._on_evict(key)
        return key, value


class LiteExpansionCache:
    """TTL cache for window query results.

    Example:
        cache = LiteExpansionCache(ttl_seconds=120)
        key = ("team", window_start, window_end)

        events = cache.get_or_compute(
            key, lambda: merger.events_in_window(decoded, window_start, window_end)
        )

        # After re-fetching the "team" feed
        cache.invalidate("team")
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize expansion cache.

        Args:
            ttl_seconds: Seconds an entry stays valid
            max_size: Maximum number of cached windows (least recently used
                entry evicted when full)
            clock: Monotonic time source, replaceable in tests
        """
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.cache: TTLCache = _WindowTTLCache(
            maxsize=max_size, ttl=ttl_seconds, timer=clock, on_evict=self._record_eviction
        )
        self.stats = {
            "hits": 0,
            "misses": 0,
            "expirations": 0,
            "evictions": 0,
            "invalidations": 0,
        }

    @classmethod
    def from_settings(cls, settings: Any) -> LiteExpansionCache:
        """Build a cache from a config_loader.Config-like object."""
        return cls(
            ttl_seconds=getattr(settings, "cache_ttl_seconds", DEFAULT_TTL_SECONDS),
            max_size=getattr(settings, "cache_max_size", DEFAULT_MAX_SIZE),
        )

    def _record_eviction(self, key: CacheKey) -> None:
        self.stats["evictions"] += 1
        logger.debug("Evicted cache entry: %s (max size %d)", key, self.max_size)

    def _expire(self) -> None:
        expired = self.cache.expire()
        if expired:
            self.stats["expirations"] += len(expired)
            logger.debug("Expired %d cache entries", len(expired))

    def get(self, key: CacheKey) -> Optional[list[LiteCalendarEvent]]:
        """Get cached events if the entry is still fresh.

        Args:
            key: ``(feed_key, window_start, window_end)``

        Returns:
            Copy of the cached list, or None if missing or expired
        """
        self._expire()
        events = self.cache.get(key)
        if events is not None:
            self.stats["hits"] += 1
            logger.debug("Cache hit for key: %s", key)
            return list(events)

        self.stats["misses"] += 1
        logger.debug("Cache miss for key: %s", key)
        return None

    def set(self, key: CacheKey, events: list[LiteCalendarEvent]) -> None:
        """Cache events for a window.

        Args:
            key: ``(feed_key, window_start, window_end)``
            events: Assembled events for the window
        """
        self._expire()
        self.cache[key] = list(events)
        logger.debug("Cached %d events for key: %s", len(events), key)

    def get_or_compute(
        self, key: CacheKey, factory: Callable[[], list[LiteCalendarEvent]]
    ) -> list[LiteCalendarEvent]:
        """Return the cached events for ``key``, computing and storing them on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached
        events = factory()
        self.set(key, events)
        return list(events)

    def invalidate(self, feed_key: Optional[str] = None) -> int:
        """Drop cached windows.

        Args:
            feed_key: Only drop this feed's windows; all entries when None

        Returns:
            Number of entries removed
        """
        self._expire()
        # pop() rather than clear(): clear() goes through popitem() and would count as evictions
        stale = [key for key in self.cache if feed_key is None or key[0] == feed_key]
        for key in stale:
            self.cache.pop(key, None)
        removed = len(stale)

        self.stats["invalidations"] += 1
        logger.info("Expansion cache invalidated (%s): %d entries removed", feed_key or "all feeds", removed)
        return removed

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with counters, current size and hit rate
        """
        self._expire()
        total_requests = self.stats["hits"] + self.stats["misses"]
        hit_rate = self.stats["hits"] / total_requests if total_requests > 0 else 0.0

        return {
            **self.stats,
            "size": len(self.cache),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
            "hit_rate": hit_rate,
        }
