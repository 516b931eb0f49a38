"""API routes."""

from fastapi import APIRouter

from app.routes import admin, records

api_router = APIRouter()

# Discovery endpoints (search + featured)
api_router.include_router(records.router, prefix="/v1/records", tags=["records"])

# Admin endpoints (rotation, cache management)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])
