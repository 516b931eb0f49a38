"""Schemas for record search and featured endpoints (/v1/records)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RecordOut(BaseModel):
    """Public view of a record. Engagement user ids are never exposed."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    name: str
    description: str = ""
    image_url: str = Field(alias="imageUrl", default="")
    years: str | None = None
    source: str | None = None
    source_url: str | None = Field(alias="sourceUrl", default=None)
    tags: list[str] = Field(default_factory=list)
    occupation: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    likes: int = Field(ge=0, default=0)
    views: int = Field(ge=0, default=0)
    search_hits: int = Field(alias="searchHits", ge=0, default=0)
    is_featured: bool = Field(alias="isFeatured", default=False)
    featured_rank: int | None = Field(alias="featuredRank", default=None)
    featured_since: datetime | None = Field(alias="featuredSince", default=None)
    created_at: datetime | None = Field(alias="createdAt", default=None)


class FeaturedRecord(RecordOut):
    """A record currently in the featured set (rank 1 = most liked)."""

    is_featured: bool = Field(alias="isFeatured", default=True)
    featured_rank: int = Field(alias="featuredRank", ge=1)
    featured_since: datetime = Field(alias="featuredSince")
