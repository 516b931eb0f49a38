"""FastAPI dependencies shared by routers.

The TTL cache and the featured rotation lock live on app.state (one per
process, created in the lifespan); repositories are stateless and built
per request.
"""

import asyncio
from datetime import timedelta

from fastapi import Depends, Request

from app.services.featured import FeaturedRotation
from app.settings import get_settings
from app.stores.cache import TTLCache
from app.stores.records import RecordRepository


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_featured_lock(request: Request) -> asyncio.Lock:
    return request.app.state.featured_lock


def get_record_repository() -> RecordRepository:
    return RecordRepository()


def get_featured_rotation(
    repo: RecordRepository = Depends(get_record_repository),
    cache: TTLCache = Depends(get_cache),
    lock: asyncio.Lock = Depends(get_featured_lock),
) -> FeaturedRotation:
    settings = get_settings()
    return FeaturedRotation(
        repo,
        cache,
        lock=lock,
        size=settings.featured_size,
        window=timedelta(hours=settings.featured_window_hours),
    )
