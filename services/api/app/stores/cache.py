"""In-process TTL cache for recomputable aggregate reads.

Handles:
- Caching with TTL policies
- Per-key eviction timers (cancel-and-replace on overwrite)
- Prefix/substring invalidation

TTL policies:
- Ranked search results: 60 seconds (SEARCH_CACHE_TTL)
- Featured set: up to 1 hour, never past the freshness window

Nothing here is durable: every cached value can be recomputed from Postgres,
so a miss is never an error. One instance is created in the app lifespan and
handed to the services that need it.
"""

import asyncio
from dataclasses import dataclass, field
import logging
import time
from collections.abc import Callable
from typing import Any

# TTL constants (in seconds)
TTL_SEARCH = 60  # 1 minute
TTL_FEATURED = 3600  # 1 hour

# Key prefixes
PREFIX_SEARCH = "search:"
PREFIX_FEATURED = "featured:"

logger = logging.getLogger("uvicorn.error")


@dataclass
class CacheEntry:
    """A cached value with its lifetime bounds (clock seconds)."""

    key: str
    value: Any
    created_at: float
    expires_at: float
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache:
    """Key/value store with per-entry expiry.

    Reads check expiry lazily, so a value is never returned past `expires_at`
    even if its eviction timer has not fired yet. When an event loop is
    running, `set` also schedules a timer that physically drops the entry.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        """Get value from cache.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if missing or expired.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self.delete(key)
            return None
        logger.debug(f"Cache HIT: {key}")
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Set value in cache with TTL.

        Any pending eviction for `key` is cancelled before the new entry is
        stored, so an old timer can never remove this write.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Time-to-live in seconds.
        """
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")

        previous = self._entries.get(key)
        if previous is not None:
            self._cancel(previous)

        now = self._clock()
        entry = CacheEntry(key=key, value=value, created_at=now, expires_at=now + ttl)
        entry.timer = self._schedule_eviction(entry, ttl)
        self._entries[key] = entry
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")

    def delete(self, key: str) -> None:
        """Delete value from cache.

        Args:
            key: Cache key.
        """
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._cancel(entry)

    def delete_pattern(self, pattern: str) -> int:
        """Delete every entry whose key contains `pattern`.

        Args:
            pattern: Substring to match against keys (not a glob).

        Returns:
            Number of entries removed.
        """
        matched = [key for key in self._entries if pattern in key]
        for key in matched:
            self.delete(key)
        if matched:
            logger.info(f"Cleared {len(matched)} cache entries matching: {pattern}")
        return len(matched)

    def clear(self) -> None:
        """Drop every entry and cancel all pending timers."""
        for entry in self._entries.values():
            self._cancel(entry)
        self._entries.clear()
        logger.info("All cache cleared")

    def stats(self) -> dict[str, Any]:
        """Size and keys of entries that are still live."""
        now = self._clock()
        keys = [key for key, entry in self._entries.items() if not entry.is_expired(now)]
        return {"size": len(keys), "keys": keys}

    def close(self) -> None:
        """Release timers at shutdown."""
        self.clear()

    # ============================================================
    # Eviction timers
    # ============================================================

    def _schedule_eviction(self, entry: CacheEntry, ttl: float) -> asyncio.TimerHandle | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (scripts, sync tests): lazy expiry on read still applies.
            return None
        return loop.call_later(ttl, self._evict, entry)

    def _evict(self, entry: CacheEntry) -> None:
        # Only drop the exact entry this timer was scheduled for.
        if self._entries.get(entry.key) is entry:
            del self._entries[entry.key]

    @staticmethod
    def _cancel(entry: CacheEntry) -> None:
        if entry.timer is not None:
            entry.timer.cancel()
            entry.timer = None
