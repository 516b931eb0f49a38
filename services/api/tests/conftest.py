"""Shared fixtures: an in-memory record repository and a controllable clock."""

import asyncio
from datetime import datetime, timedelta, timezone
import re
from typing import Any

import pytest

from app.models import Record
from app.stores.cache import TTLCache
from app.stores.records import ARRAY_JOIN_SEPARATOR, PatternTier

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """One clock for both the rotation (datetime) and the cache (seconds)."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def monotonic(self) -> float:
        return self.current.timestamp()

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


def make_record(name: str, **overrides: Any) -> Record:
    """Build a transient Record with every non-null column populated."""
    slug = re.sub(r"\W+", "_", name).strip("_")
    values: dict[str, Any] = {
        "id": overrides.pop("id", slug.lower()),
        "wikipedia_id": slug,
        "name": name,
        "description": "",
        "image_url": "",
        "years": None,
        "source": "Wikipedia",
        "source_url": None,
        "tags": [],
        "occupation": [],
        "categories": [],
        "likes": 0,
        "liked_by": [],
        "views": 0,
        "search_hits": 0,
        "is_featured": False,
        "featured_rank": None,
        "featured_since": None,
        "created_at": BASE_TIME,
    }
    values.update(overrides)
    return Record(**values)


class FakeRecordRepository:
    """In-memory stand-in for RecordRepository.

    Pattern tiers are evaluated with `re` (case-insensitive), text-index
    matches are plain phrase containment over name/description/categories.
    """

    def __init__(self, records: list[Record] | None = None) -> None:
        self.records: list[Record] = list(records or [])
        self.text_scores: dict[str, float] = {}
        self.calls: dict[str, int] = {}
        self.fail_text_index = False
        self.fail_patterns = False
        self.fail_updates_after: int | None = None
        self.fail_clear = False
        # Suspend at every store call, like a real round trip
        self.yield_control = False

    async def _enter(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1
        if self.yield_control:
            await asyncio.sleep(0)

    async def find_all(self) -> list[Record]:
        await self._enter("find_all")
        return sorted(self.records, key=lambda r: r.created_at, reverse=True)

    async def find_by_id(self, record_id: str) -> Record | None:
        await self._enter("find_by_id")
        return next((r for r in self.records if r.id == record_id), None)

    async def find_by_text_index(self, phrase: str, limit: int = 50) -> list[tuple[Record, float]]:
        await self._enter("find_by_text_index")
        if self.fail_text_index:
            raise ConnectionError("text index unavailable")
        hits = []
        for record in self.records:
            document = " ".join([record.name, record.description, *record.categories]).lower()
            if phrase in document:
                hits.append((record, self.text_scores.get(record.id, 0.1)))
        hits.sort(key=lambda pair: -pair[1])
        return hits[:limit]

    async def find_by_patterns(self, tiers: list[PatternTier], limit: int = 50) -> list[Record]:
        await self._enter("find_by_patterns")
        if self.fail_patterns:
            raise ConnectionError("pattern query timed out")
        matched = [
            r for r in self.records if any(self._tier_matches(r, tier) for tier in tiers if tier.clauses)
        ]
        matched.sort(key=lambda r: (-r.likes, -r.created_at.timestamp()))
        return matched[:limit]

    @staticmethod
    def _tier_matches(record: Record, tier: PatternTier) -> bool:
        for clause in tier.clauses:
            value = getattr(record, clause.field)
            if isinstance(value, list):
                value = ARRAY_JOIN_SEPARATOR.join(value)
            if value is None or not re.search(clause.regex, value, re.IGNORECASE):
                return False
        return True

    async def update_by_id(self, record_id: str, values: dict[str, Any]) -> Record | None:
        await self._enter("update_by_id")
        if self.fail_updates_after is not None and self.calls["update_by_id"] > self.fail_updates_after:
            raise ConnectionError("store went away")
        record = next((r for r in self.records if r.id == record_id), None)
        if record is None:
            return None
        for key, value in values.items():
            setattr(record, key, value)
        return record

    async def find_featured(self, limit: int) -> list[Record]:
        await self._enter("find_featured")
        featured = [r for r in self.records if r.is_featured]
        featured.sort(key=lambda r: r.featured_rank)
        return featured[:limit]

    async def find_top_by_likes(self, limit: int) -> list[Record]:
        await self._enter("find_top_by_likes")
        ordered = sorted(self.records, key=lambda r: (-r.likes, -r.created_at.timestamp()))
        return ordered[:limit]

    async def clear_featured(self) -> int:
        await self._enter("clear_featured")
        if self.fail_clear:
            raise ConnectionError("store went away")
        cleared = 0
        for record in self.records:
            if record.is_featured:
                record.is_featured = False
                record.featured_rank = None
                cleared += 1
        return cleared

    async def latest_featured_since(self) -> datetime | None:
        await self._enter("latest_featured_since")
        stamps = [r.featured_since for r in self.records if r.is_featured and r.featured_since]
        return max(stamps) if stamps else None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(clock=clock.monotonic)


@pytest.fixture
def repo() -> FakeRecordRepository:
    return FakeRecordRepository()
