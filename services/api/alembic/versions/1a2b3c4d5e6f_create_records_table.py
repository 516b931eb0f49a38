"""create_records_table

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "1a2b3c4d5e6f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("wikipedia_id", sa.String(length=200), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("image_url", sa.Text(), nullable=False, server_default=""),
        sa.Column("years", sa.String(length=50), nullable=True),
        sa.Column("source", sa.String(length=50), nullable=False, server_default="Wikipedia"),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.String()), nullable=False, server_default="{}"),
        sa.Column("occupation", postgresql.ARRAY(sa.String()), nullable=False, server_default="{}"),
        sa.Column("categories", postgresql.ARRAY(sa.String()), nullable=False, server_default="{}"),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("liked_by", postgresql.ARRAY(sa.String()), nullable=False, server_default="{}"),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("search_hits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("featured_rank", sa.Integer(), nullable=True),
        sa.Column("featured_since", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(is_featured AND featured_rank IS NOT NULL) OR (NOT is_featured AND featured_rank IS NULL)",
            name="ck_records_featured_rank",
        ),
    )

    op.create_index(op.f("ix_records_wikipedia_id"), "records", ["wikipedia_id"], unique=True)
    op.create_index(op.f("ix_records_name"), "records", ["name"], unique=False)
    op.create_index(op.f("ix_records_is_featured"), "records", ["is_featured"], unique=False)
    op.create_index("ix_records_likes_created_at", "records", ["likes", "created_at"], unique=False)
    op.create_index("ix_records_featured_rank", "records", ["is_featured", "featured_rank"], unique=False)

    # Full-text index over name + description. Categories are folded into the
    # query-side document only (array_to_string is not immutable).
    op.execute(
        "CREATE INDEX ix_records_text_search ON records USING gin "
        "(to_tsvector('english'::regconfig, coalesce(name, '') || ' ' || coalesce(description, '')))"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_records_text_search")
    op.drop_index("ix_records_featured_rank", table_name="records")
    op.drop_index("ix_records_likes_created_at", table_name="records")
    op.drop_index(op.f("ix_records_is_featured"), table_name="records")
    op.drop_index(op.f("ix_records_name"), table_name="records")
    op.drop_index(op.f("ix_records_wikipedia_id"), table_name="records")
    op.drop_table("records")
