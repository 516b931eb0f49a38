"""Record repository over PostgreSQL.

The query interface search and featured rotation consume:
- find_all / find_by_id / update_by_id
- find_by_text_index: exact-phrase full-text match ranked by ts_rank
- find_by_patterns: case-insensitive regex tiers (any tier, all clauses)
- featured helpers: find_featured, find_top_by_likes, clear_featured,
  latest_featured_since

Each call is its own unit of work (one get_session() per call), so a caller
that needs ordering between writes gets it by awaiting them in sequence.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import and_, func, literal_column, or_, select, update
from sqlalchemy.sql.elements import ColumnElement

from app.models import Record
from app.stores.postgres import get_session

TEXT_SEARCH_CONFIG = literal_column("'english'::regconfig")

# Array elements are joined with a unit separator so a pattern never
# matches across two elements.
ARRAY_JOIN_SEPARATOR = "\x1f"


@dataclass(frozen=True)
class FieldPattern:
    """Case-insensitive regex applied to one record field."""

    field: str
    regex: str


@dataclass(frozen=True)
class PatternTier:
    """A group of clauses that must all match."""

    name: str
    clauses: tuple[FieldPattern, ...]


_TEXT_FIELDS = {
    "name": Record.name,
    "description": Record.description,
    "years": Record.years,
}
_ARRAY_FIELDS = {
    "tags": Record.tags,
    "occupation": Record.occupation,
    "categories": Record.categories,
}
PATTERN_FIELDS = frozenset(_TEXT_FIELDS) | frozenset(_ARRAY_FIELDS)


def _pattern_clause(pattern: FieldPattern) -> ColumnElement[bool]:
    if pattern.field in _TEXT_FIELDS:
        target = _TEXT_FIELDS[pattern.field]
    elif pattern.field in _ARRAY_FIELDS:
        target = func.array_to_string(_ARRAY_FIELDS[pattern.field], ARRAY_JOIN_SEPARATOR)
    else:
        raise ValueError(f"Unsupported pattern field: {pattern.field}")
    return target.regexp_match(pattern.regex, flags="i")


def _text_document() -> ColumnElement[Any]:
    return func.to_tsvector(
        TEXT_SEARCH_CONFIG,
        func.concat_ws(
            " ",
            Record.name,
            Record.description,
            func.array_to_string(Record.categories, " "),
        ),
    )


class RecordRepository:
    """Async data access for the records table."""

    async def find_all(self) -> list[Record]:
        async with get_session() as session:
            result = await session.execute(select(Record).order_by(Record.created_at.desc()))
            return list(result.scalars().all())

    async def find_by_id(self, record_id: str) -> Record | None:
        async with get_session() as session:
            return await session.get(Record, record_id)

    async def find_by_text_index(self, phrase: str, limit: int = 50) -> list[tuple[Record, float]]:
        """Exact-phrase full-text match, best ts_rank first.

        Args:
            phrase: Normalized query text.
            limit: Max records to return.

        Returns:
            (record, score) pairs where score is the native ts_rank value.
        """
        document = _text_document()
        tsquery = func.phraseto_tsquery(TEXT_SEARCH_CONFIG, phrase)
        score = func.ts_rank(document, tsquery).label("score")

        stmt = (
            select(Record, score)
            .where(document.op("@@")(tsquery))
            .order_by(score.desc())
            .limit(limit)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [(row[0], float(row[1])) for row in result.all()]

    async def find_by_patterns(self, tiers: list[PatternTier], limit: int = 50) -> list[Record]:
        """Records matching any tier, most liked (then newest) first.

        Args:
            tiers: Pattern tiers; a record matches a tier when every clause matches.
            limit: Max records to return.
        """
        conditions = [
            and_(*(_pattern_clause(clause) for clause in tier.clauses))
            for tier in tiers
            if tier.clauses
        ]
        if not conditions:
            return []

        stmt = (
            select(Record)
            .where(or_(*conditions))
            .order_by(Record.likes.desc(), Record.created_at.desc())
            .limit(limit)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def update_by_id(self, record_id: str, values: dict[str, Any]) -> Record | None:
        stmt = (
            update(Record)
            .where(Record.id == record_id)
            .values(**values)
            .returning(Record)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    # ============================================================
    # Featured rotation
    # ============================================================

    async def find_featured(self, limit: int) -> list[Record]:
        stmt = (
            select(Record)
            .where(Record.is_featured.is_(True))
            .order_by(Record.featured_rank.asc())
            .limit(limit)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def find_top_by_likes(self, limit: int) -> list[Record]:
        stmt = (
            select(Record)
            .order_by(Record.likes.desc(), Record.created_at.desc())
            .limit(limit)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def clear_featured(self) -> int:
        """Unfeature every featured record. Returns the number of rows changed."""
        stmt = (
            update(Record)
            .where(Record.is_featured.is_(True))
            .values(is_featured=False, featured_rank=None)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return result.rowcount or 0

    async def latest_featured_since(self) -> datetime | None:
        stmt = select(func.max(Record.featured_since)).where(Record.is_featured.is_(True))
        async with get_session() as session:
            result = await session.execute(stmt)
            return result.scalar()
