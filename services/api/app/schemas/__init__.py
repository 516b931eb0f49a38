"""Pydantic schemas for API request/response validation."""

from app.schemas.common import ErrorDetail, ErrorResponse
from app.schemas.records import FeaturedRecord, RecordOut

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "FeaturedRecord",
    "RecordOut",
]
