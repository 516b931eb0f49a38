"""Search orchestration: cache, dual retrieval, merge, rank.

Flow for one query:
1. Validate + normalize (trim, lower-case, collapse whitespace)
2. Cache hit -> return as-is
3. Miss -> run both retrieval paths concurrently:
   - indexed: exact-phrase full-text match, top N by ts_rank
   - heuristic: regex tiers over name/occupation/categories/tags/years, top N
4. Merge by record id (indexed first, first occurrence wins) and rank
5. Cache the ranked list with a short TTL

One failing path degrades the search to the other path; both failing raises
FatalEngineError and nothing is cached.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable

from app.schemas import RecordOut
from app.services.errors import FatalEngineError, TransientRetrievalError, ValidationError
from app.services.ranking import SearchCandidate, rank_candidates
from app.settings import get_settings
from app.stores.cache import PREFIX_SEARCH, TTLCache
from app.stores.records import FieldPattern, PatternTier, RecordRepository

logger = logging.getLogger("uvicorn.error")

# Fixed scope qualifier: this cache namespace only holds record searches.
SEARCH_SCOPE = "records"

MIN_TERM_LENGTH = 2
FACET_FIELDS = ("occupation", "categories", "tags", "years")


def normalize_query(query: str | None) -> str:
    """Trim, lower-case and collapse whitespace.

    Raises:
        ValidationError: If the query is missing or blank.
    """
    if query is None or not query.strip():
        raise ValidationError("Search query is required", field="query")
    return " ".join(query.split()).lower()


def search_cache_key(normalized_query: str) -> str:
    return f"{PREFIX_SEARCH}{SEARCH_SCOPE}:{normalized_query}"


def build_pattern_tiers(query: str) -> list[PatternTier]:
    """Heuristic retrieval tiers, tightest first.

    Args:
        query: Normalized query.

    Returns:
        Tiers for RecordRepository.find_by_patterns. A record matches when any
        tier matches.
    """
    escaped = re.escape(query)
    terms = query.split()

    tiers = [
        PatternTier("name_prefix", (FieldPattern("name", f"^{escaped}"),)),
        PatternTier("name_contains", (FieldPattern("name", escaped),)),
        PatternTier(
            "name_all_terms",
            tuple(FieldPattern("name", re.escape(term)) for term in terms),
        ),
    ]
    tiers.extend(
        PatternTier(f"name_term:{term}", (FieldPattern("name", re.escape(term)),))
        for term in terms
        if len(term) >= MIN_TERM_LENGTH
    )
    tiers.extend(
        PatternTier(f"{field}_contains", (FieldPattern(field, escaped),))
        for field in FACET_FIELDS
    )
    return tiers


async def _retrieve_indexed(
    repo: RecordRepository, query: str, limit: int
) -> list[SearchCandidate]:
    rows = await repo.find_by_text_index(query, limit=limit)
    return [
        SearchCandidate(record=RecordOut.model_validate(record), text_score=score)
        for record, score in rows
    ]


async def _retrieve_heuristic(
    repo: RecordRepository, query: str, limit: int
) -> list[SearchCandidate]:
    records = await repo.find_by_patterns(build_pattern_tiers(query), limit=limit)
    return [SearchCandidate(record=RecordOut.model_validate(record)) for record in records]


async def _tolerate(path: str, retrieval: Awaitable[list[SearchCandidate]]) -> list[SearchCandidate] | None:
    try:
        return await retrieval
    except Exception as e:
        error = TransientRetrievalError(path, e)
        logger.warning(f"Search degraded: {error}")
        return None


def merge_candidates(*result_sets: list[SearchCandidate] | None) -> list[SearchCandidate]:
    """Union by record id; the first occurrence of an id wins."""
    merged: dict[str, SearchCandidate] = {}
    for results in result_sets:
        for candidate in results or []:
            merged.setdefault(candidate.record.id, candidate)
    return list(merged.values())


async def search_records(
    query: str | None,
    *,
    repo: RecordRepository,
    cache: TTLCache,
    ttl: int | None = None,
    limit: int | None = None,
) -> list[RecordOut]:
    """Ranked records for a free-text query.

    Args:
        query: Raw user query.
        repo: Record store.
        cache: Shared TTL cache.
        ttl: Cache TTL override in seconds (defaults to SEARCH_CACHE_TTL).
        limit: Per-path candidate limit override (defaults to SEARCH_CANDIDATE_LIMIT).

    Returns:
        Records ordered by relevance.

    Raises:
        ValidationError: Query missing or blank.
        FatalEngineError: Both retrieval paths failed.
    """
    normalized = normalize_query(query)
    key = search_cache_key(normalized)

    cached = cache.get(key)
    if cached is not None:
        return list(cached)

    settings = get_settings()
    limit = limit or settings.search_candidate_limit

    indexed, heuristic = await asyncio.gather(
        _tolerate("indexed", _retrieve_indexed(repo, normalized, limit)),
        _tolerate("heuristic", _retrieve_heuristic(repo, normalized, limit)),
    )
    if indexed is None and heuristic is None:
        raise FatalEngineError(f"All retrieval paths failed for query: {normalized!r}")

    candidates = merge_candidates(indexed, heuristic)
    ranked = rank_candidates(normalized, candidates)

    cache.set(key, ranked, ttl or settings.search_cache_ttl)
    logger.info(
        f"Search {normalized!r}: {len(ranked)} results "
        f"(indexed={len(indexed or [])}, heuristic={len(heuristic or [])})"
    )
    return list(ranked)
