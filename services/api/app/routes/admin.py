"""Admin endpoints for featured rotation and cache management.

These endpoints are intended for manual testing and admin operations.
In production, consider adding authentication (API key or admin token).
"""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.routes.deps import get_cache, get_featured_rotation
from app.schemas import FeaturedRecord
from app.services.featured import FeaturedRotation
from app.stores.cache import TTLCache

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


class CacheStatsResponse(BaseModel):
    """Live cache entries."""

    size: int
    keys: list[str]


class CacheInvalidationResponse(BaseModel):
    """Result of a cache invalidation."""

    success: bool
    removed: int


@router.post("/featured/refresh", response_model=list[FeaturedRecord])
async def refresh_featured(
    rotation: FeaturedRotation = Depends(get_featured_rotation),
) -> list[FeaturedRecord]:
    """Force a featured rotation regardless of staleness."""
    featured = await rotation.update_daily_featured()
    logger.info(f"Featured rotation forced via admin: {len(featured)} records")
    return featured


@router.get("/cache", response_model=CacheStatsResponse)
async def get_cache_stats(cache: TTLCache = Depends(get_cache)) -> CacheStatsResponse:
    """Get cache size and live keys."""
    return CacheStatsResponse(**cache.stats())


@router.delete("/cache", response_model=CacheInvalidationResponse)
async def invalidate_cache(
    pattern: str | None = Query(
        default=None,
        description="Remove keys containing this substring; omit to clear everything",
        examples=["search:"],
    ),
    cache: TTLCache = Depends(get_cache),
) -> CacheInvalidationResponse:
    """Invalidate cache entries."""
    if pattern:
        removed = cache.delete_pattern(pattern)
    else:
        removed = len(cache)
        cache.clear()
    return CacheInvalidationResponse(success=True, removed=removed)
