"""Tests for search orchestration (no DB: in-memory repository)."""

import logging

import pytest

from app.services.errors import FatalEngineError, ValidationError
from app.services.search import (
    build_pattern_tiers,
    normalize_query,
    search_cache_key,
    search_records,
)

from tests.conftest import FakeRecordRepository, make_record


@pytest.fixture
def catalog() -> FakeRecordRepository:
    return FakeRecordRepository(
        [
            make_record(
                "Harriet Tubman",
                description="Abolitionist who led people to freedom on the Underground Railroad.",
                occupation=["abolitionist", "nurse"],
                categories=["Activists & Freedom Fighters"],
                likes=40,
            ),
            make_record("Harriet Jacobs", description="Writer of an autobiography.", occupation=["writer"], likes=3),
            make_record("Frederick Douglass", occupation=["abolitionist", "orator"], likes=90),
            make_record("Jesse Owens", tags=["olympics"], years="1913-1980"),
        ]
    )


def test_normalize_query() -> None:
    assert normalize_query("  Harriet   TUBMAN \n") == "harriet tubman"


@pytest.mark.parametrize("query", [None, "", "   "])
def test_normalize_query_rejects_blank(query) -> None:
    with pytest.raises(ValidationError):
        normalize_query(query)


def test_build_pattern_tiers() -> None:
    tiers = build_pattern_tiers("ida b. wells")
    names = [t.name for t in tiers]
    assert names == [
        "name_prefix",
        "name_contains",
        "name_all_terms",
        "name_term:ida",
        "name_term:wells",
        "occupation_contains",
        "categories_contains",
        "tags_contains",
        "years_contains",
    ]
    assert tiers[0].clauses[0].regex.startswith("^ida")
    assert r"b\." in tiers[1].clauses[0].regex
    assert len(tiers[2].clauses) == 3


@pytest.mark.asyncio
async def test_blank_query_is_rejected(catalog, cache) -> None:
    with pytest.raises(ValidationError):
        await search_records("  ", repo=catalog, cache=cache)
    assert catalog.calls == {}


@pytest.mark.asyncio
async def test_exact_name_ranks_first(catalog, cache) -> None:
    results = await search_records("Harriet Tubman", repo=catalog, cache=cache)
    assert results[0].name == "Harriet Tubman"
    assert "Harriet Jacobs" in [r.name for r in results]


@pytest.mark.asyncio
async def test_merges_paths_without_duplicates(catalog, cache) -> None:
    # "abolitionist" hits Tubman via the text index (description) and
    # via the occupation pattern; Douglass only via occupation.
    results = await search_records("abolitionist", repo=catalog, cache=cache)
    ids = [r.id for r in results]
    assert sorted(ids) == ["frederick_douglass", "harriet_tubman"]
    assert catalog.calls["find_by_text_index"] == 1
    assert catalog.calls["find_by_patterns"] == 1


@pytest.mark.asyncio
async def test_facet_fields_are_searched(catalog, cache) -> None:
    assert [r.name for r in await search_records("olympics", repo=catalog, cache=cache)] == ["Jesse Owens"]
    assert [r.name for r in await search_records("1913", repo=catalog, cache=cache)] == ["Jesse Owens"]


@pytest.mark.asyncio
async def test_cache_hit_skips_retrieval(catalog, cache) -> None:
    first = await search_records("harriet", repo=catalog, cache=cache)
    second = await search_records("  HARRIET ", repo=catalog, cache=cache)

    assert [r.id for r in first] == [r.id for r in second]
    assert catalog.calls["find_by_text_index"] == 1
    assert catalog.calls["find_by_patterns"] == 1
    assert cache.get(search_cache_key("harriet")) is not None


@pytest.mark.asyncio
async def test_cached_result_expires(catalog, cache, clock) -> None:
    await search_records("harriet", repo=catalog, cache=cache, ttl=30)
    clock.advance(seconds=31)
    await search_records("harriet", repo=catalog, cache=cache, ttl=30)
    assert catalog.calls["find_by_patterns"] == 2


@pytest.mark.asyncio
async def test_empty_result_is_cached(catalog, cache) -> None:
    assert await search_records("zora neale hurston", repo=catalog, cache=cache) == []
    assert await search_records("zora neale hurston", repo=catalog, cache=cache) == []
    assert catalog.calls["find_by_patterns"] == 1


@pytest.mark.asyncio
async def test_indexed_failure_degrades_to_heuristic(catalog, cache, caplog) -> None:
    catalog.fail_text_index = True
    with caplog.at_level(logging.WARNING, logger="uvicorn.error"):
        results = await search_records("harriet tubman", repo=catalog, cache=cache)

    assert results[0].name == "Harriet Tubman"
    assert "indexed retrieval failed" in caplog.text


@pytest.mark.asyncio
async def test_heuristic_failure_degrades_to_indexed(catalog, cache) -> None:
    catalog.fail_patterns = True
    results = await search_records("underground railroad", repo=catalog, cache=cache)
    assert [r.name for r in results] == ["Harriet Tubman"]


@pytest.mark.asyncio
async def test_both_paths_failing_is_fatal_and_not_cached(catalog, cache) -> None:
    catalog.fail_text_index = True
    catalog.fail_patterns = True

    with pytest.raises(FatalEngineError):
        await search_records("harriet", repo=catalog, cache=cache)
    assert cache.get(search_cache_key("harriet")) is None

    catalog.fail_text_index = False
    catalog.fail_patterns = False
    results = await search_records("harriet", repo=catalog, cache=cache)
    assert {r.name for r in results} == {"Harriet Tubman", "Harriet Jacobs"}


@pytest.mark.asyncio
async def test_text_index_score_feeds_ranking(cache) -> None:
    repo = FakeRecordRepository(
        [
            make_record("Ida B. Wells", description="Investigative journalist."),
            make_record("Wells Fargo Museum", description="Not a journalist at all."),
        ]
    )
    # Without index scores "wells fargo museum" (prefix, 500) beats "ida b. wells" (substring, 250).
    repo.text_scores = {"ida_b_wells": 30.0}
    results = await search_records("wells", repo=repo, cache=cache)
    assert [r.name for r in results] == ["Ida B. Wells", "Wells Fargo Museum"]


@pytest.mark.asyncio
async def test_regex_metacharacters_are_literal(cache) -> None:
    repo = FakeRecordRepository([make_record("W.E.B. Du Bois"), make_record("W E B Smith")])
    results = await search_records("w.e.b.", repo=repo, cache=cache)
    assert [r.name for r in results] == ["W.E.B. Du Bois"]
