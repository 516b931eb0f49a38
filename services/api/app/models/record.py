"""Record model.

A Record is one biographical profile in the catalog (a historical figure).
Search reads it; featured rotation annotates the featured_* columns.

Invariant: featured_rank is set iff is_featured is true.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from app.stores.postgres import Base


def generate_record_id() -> str:
    """Generate unique record ID."""
    return str(uuid4())


class Record(Base):
    """Biographical profile record."""

    __tablename__ = "records"
    __table_args__ = (
        Index("ix_records_likes_created_at", "likes", "created_at"),
        Index("ix_records_featured_rank", "is_featured", "featured_rank"),
        CheckConstraint(
            "(is_featured AND featured_rank IS NOT NULL) OR (NOT is_featured AND featured_rank IS NULL)",
            name="ck_records_featured_rank",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_record_id)

    # External identity (dedup key for ingestion)
    wikipedia_id: Mapped[str] = mapped_column(String(200), unique=True, index=True)

    # Profile
    name: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    image_url: Mapped[str] = mapped_column(Text, default="")
    years: Mapped[str | None] = mapped_column(String(50))  # e.g. "1822-1913"
    source: Mapped[str] = mapped_column(String(50), default="Wikipedia")
    source_url: Mapped[str | None] = mapped_column(Text)

    # Searchable facets
    tags: Mapped[list[str]] = mapped_column(ARRAY(String), default=list)
    occupation: Mapped[list[str]] = mapped_column(ARRAY(String), default=list)
    categories: Mapped[list[str]] = mapped_column(ARRAY(String), default=list)

    # Engagement
    likes: Mapped[int] = mapped_column(default=0)
    liked_by: Mapped[list[str]] = mapped_column(ARRAY(String), default=list)
    views: Mapped[int] = mapped_column(default=0)
    search_hits: Mapped[int] = mapped_column(default=0)

    # Featured rotation
    is_featured: Mapped[bool] = mapped_column(default=False, index=True)
    featured_rank: Mapped[int | None] = mapped_column()  # 1..k
    featured_since: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Record {self.id} {self.name!r}>"
