"""Featured rotation: the top-k most liked records, refreshed daily.

Rotation (update_daily_featured):
1. Clear is_featured/featured_rank on every featured record (committed first)
2. Pick top-k by likes DESC, then created_at DESC
3. Assign ranks 1..k and stamp featured_since = now

The two phases are separate store round trips. A failure between them can
leave fewer than k featured; it is raised as FatalEngineError, not papered
over. A store with multi-record transactions could wrap both phases in one.

Reads are staleness-gated: the first reader after the freshness window pays
for the recompute. There is no background scheduler (see
scripts/refresh_featured.py for a cron-style run).

Locking:
- One asyncio.Lock per process (app.state.featured_lock) guards rotation
  and featured reads, so concurrent stale readers trigger a single rotation
- Readers queued behind a rotation re-check the cache and staleness once
  they hold the lock, and never see a half-written set
- The lock is in-process only; separate API processes can still overlap
"""

import asyncio
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
import logging

from app.schemas import FeaturedRecord
from app.services.errors import EngineError, FatalEngineError
from app.stores.cache import PREFIX_FEATURED, TTL_FEATURED, TTLCache
from app.stores.records import RecordRepository

logger = logging.getLogger("uvicorn.error")

FEATURED_SIZE = 3
FEATURED_WINDOW = timedelta(hours=24)
FEATURED_CACHE_KEY = f"{PREFIX_FEATURED}current"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@asynccontextmanager
async def _store_errors(action: str) -> AsyncGenerator[None, None]:
    try:
        yield
    except EngineError:
        raise
    except Exception as e:
        logger.exception(f"Featured {action} failed")
        raise FatalEngineError(f"Featured {action} failed: {e}") from e


class FeaturedRotation:
    """Maintains the featured set on top of the record store.

    Instances are cheap and may be built per request; pass the shared
    process lock so they serialize against each other.
    """

    def __init__(
        self,
        repo: RecordRepository,
        cache: TTLCache,
        *,
        lock: asyncio.Lock | None = None,
        size: int = FEATURED_SIZE,
        window: timedelta = FEATURED_WINDOW,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repo
        self._cache = cache
        self._lock = lock if lock is not None else asyncio.Lock()
        self._size = size
        self._window = window
        self._now = now

    async def update_daily_featured(self) -> list[FeaturedRecord]:
        """Recompute the featured set from current like counts.

        Returns:
            The new featured records ordered by rank (empty if the catalog is).

        Raises:
            FatalEngineError: The store failed in either phase.
        """
        async with self._lock:
            return await self._rotate()

    async def needs_refresh(self) -> bool:
        """True when nothing is featured or the freshest stamp is a window old."""
        async with _store_errors("staleness check"):
            latest = await self._repo.latest_featured_since()
        if latest is None:
            return True
        return self._now() - _as_utc(latest) >= self._window

    async def get_featured(self) -> list[FeaturedRecord]:
        """Current featured set ordered by rank, initializing it if empty."""
        async with self._lock:
            return await self._read_or_initialize()

    async def get_or_refresh_featured(self) -> list[FeaturedRecord]:
        """Featured set, recomputed synchronously when stale."""
        cached = self._cache.get(FEATURED_CACHE_KEY)
        if cached is not None:
            return list(cached)

        async with self._lock:
            # Another reader may have refreshed while we waited.
            cached = self._cache.get(FEATURED_CACHE_KEY)
            if cached is not None:
                return list(cached)

            if await self.needs_refresh():
                logger.info("Featured records are stale, refreshing...")
                featured = await self._rotate()
            else:
                featured = await self._read_or_initialize()

            self._cache_featured(featured)
        return list(featured)

    def next_refresh_at(self, featured: list[FeaturedRecord]) -> datetime | None:
        """When the given featured set goes stale (None if it is empty)."""
        if not featured:
            return None
        freshest = max(_as_utc(item.featured_since) for item in featured)
        return freshest + self._window

    def seconds_until_stale(self, featured: list[FeaturedRecord]) -> float | None:
        """Time left in the freshness window (never negative)."""
        expires_at = self.next_refresh_at(featured)
        if expires_at is None:
            return None
        return max((expires_at - self._now()).total_seconds(), 0.0)

    async def _rotate(self) -> list[FeaturedRecord]:
        # Caller holds self._lock.
        logger.info("Starting featured rotation...")
        try:
            async with _store_errors("rotation"):
                cleared = await self._repo.clear_featured()
                logger.info(f"Cleared {cleared} previously featured records")

                top = await self._repo.find_top_by_likes(self._size)
                if not top:
                    logger.warning("No records found to feature")
                    return []

                stamped_at = self._now()
                featured: list[FeaturedRecord] = []
                for rank, record in enumerate(top, start=1):
                    updated = await self._repo.update_by_id(
                        record.id,
                        {"is_featured": True, "featured_rank": rank, "featured_since": stamped_at},
                    )
                    if updated is None:
                        raise FatalEngineError(
                            f"Record {record.id} disappeared during rotation "
                            f"({rank - 1} of {len(top)} featured)"
                        )
                    featured.append(FeaturedRecord.model_validate(updated))
        finally:
            self._cache.delete_pattern(PREFIX_FEATURED)

        for item in featured:
            logger.info(f"  #{item.featured_rank}: {item.name} ({item.likes} likes)")
        return featured

    async def _read_or_initialize(self) -> list[FeaturedRecord]:
        # Caller holds self._lock.
        async with _store_errors("read"):
            rows = await self._repo.find_featured(self._size)
        if not rows:
            logger.info("No featured records found, initializing...")
            return await self._rotate()
        return [FeaturedRecord.model_validate(row) for row in rows]

    def _cache_featured(self, featured: list[FeaturedRecord]) -> None:
        remaining = self.seconds_until_stale(featured)
        # Never cache past the freshness window.
        if remaining:
            self._cache.set(FEATURED_CACHE_KEY, list(featured), min(TTL_FEATURED, remaining))
