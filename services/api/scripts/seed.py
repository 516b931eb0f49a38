#!/usr/bin/env python3
"""Seed database with sample records.

Creates a handful of biographical profiles with likes spread out enough
to exercise search ranking and the featured rotation.

Seed script is idempotent: records are keyed by wikipedia_id.

Usage:
    cd services/api
    python -m scripts.seed
"""

import asyncio
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from app.models import Record  # noqa: E402
from app.stores.postgres import close_db, get_session, init_db  # noqa: E402

load_dotenv()

SAMPLE_RECORDS = [
    {
        "wikipedia_id": "Harriet_Tubman",
        "name": "Harriet Tubman",
        "description": "American abolitionist and social activist who escaped slavery "
        "and guided enslaved people to freedom via the Underground Railroad.",
        "years": "1822-1913",
        "occupation": ["abolitionist", "nurse", "spy"],
        "categories": ["Activists & Freedom Fighters"],
        "tags": ["underground railroad", "civil war"],
        "likes": 50,
    },
    {
        "wikipedia_id": "Frederick_Douglass",
        "name": "Frederick Douglass",
        "description": "American social reformer, abolitionist, orator, writer, and statesman.",
        "years": "1818-1895",
        "occupation": ["writer", "orator", "abolitionist"],
        "categories": ["Activists & Freedom Fighters", "Literary Icons"],
        "tags": ["abolition", "narrative"],
        "likes": 10,
    },
    {
        "wikipedia_id": "Maya_Angelou",
        "name": "Maya Angelou",
        "description": "American memoirist, poet, and civil rights activist.",
        "years": "1928-2014",
        "occupation": ["poet", "memoirist"],
        "categories": ["Literary Icons"],
        "tags": ["poetry", "civil rights"],
        "likes": 50,
    },
    {
        "wikipedia_id": "George_Washington_Carver",
        "name": "George Washington Carver",
        "description": "American agricultural scientist and inventor who promoted crop rotation.",
        "years": "1864-1943",
        "occupation": ["botanist", "inventor"],
        "categories": ["Inventors & Innovators", "Scholars & Educators"],
        "tags": ["agriculture", "peanut"],
        "likes": 5,
    },
    {
        "wikipedia_id": "Jesse_Owens",
        "name": "Jesse Owens",
        "description": "American track and field athlete who won four gold medals at the 1936 Olympics.",
        "years": "1913-1980",
        "occupation": ["athlete"],
        "categories": ["Athletes"],
        "tags": ["olympics", "track"],
        "likes": 0,
    },
]


async def seed_records(session: AsyncSession) -> int:
    """Insert missing sample records. Returns the number created."""
    created = 0
    for record_def in SAMPLE_RECORDS:
        result = await session.execute(
            select(Record).where(Record.wikipedia_id == record_def["wikipedia_id"])
        )
        if result.scalar_one_or_none():
            print(f"  skip {record_def['name']} (exists)")
            continue

        session.add(
            Record(
                **record_def,
                source_url=f"https://en.wikipedia.org/wiki/{record_def['wikipedia_id']}",
                liked_by=[],
            )
        )
        created += 1
        print(f"  + {record_def['name']}")
    return created


async def seed_database() -> None:
    """Seed database with sample records."""
    await init_db()
    try:
        print("Seeding records...")
        async with get_session() as session:
            created = await seed_records(session)
        print(f"Done: {created} records created")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(seed_database())
