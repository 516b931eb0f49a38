"""Record discovery endpoints.

GET /v1/records/search   - Ranked records for a free-text query.
GET /v1/records/featured - Current featured set (refreshed when stale).

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, Depends, Query, Response

from app.routes.deps import get_cache, get_featured_rotation, get_record_repository
from app.schemas import FeaturedRecord, RecordOut
from app.services.featured import FeaturedRotation
from app.services.search import search_records
from app.stores.cache import TTLCache
from app.stores.records import RecordRepository

router = APIRouter()


@router.get("/search", response_model=list[RecordOut])
async def search(
    query: str | None = Query(
        default=None,
        description="Free-text query matched against name, description and facets",
        examples=["harriet tubman"],
    ),
    repo: RecordRepository = Depends(get_record_repository),
    cache: TTLCache = Depends(get_cache),
) -> list[RecordOut]:
    """Search records.

    Returns:
        Records ordered by relevance. 400 if `query` is missing or blank.
    """
    return await search_records(query, repo=repo, cache=cache)


@router.get("/featured", response_model=list[FeaturedRecord])
async def get_featured(
    response: Response,
    rotation: FeaturedRotation = Depends(get_featured_rotation),
) -> list[FeaturedRecord]:
    """Get the featured set ordered by rank.

    Cache-Control max-age runs until the set goes stale.
    """
    featured = await rotation.get_or_refresh_featured()
    response.headers["Cache-Control"] = _cache_control(rotation.seconds_until_stale(featured))
    return featured


def _cache_control(max_age: float | None) -> str:
    if max_age is None:
        return "no-store"
    return f"public, max-age={int(max_age)}"
