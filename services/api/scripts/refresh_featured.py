#!/usr/bin/env python3
"""Featured rotation job (one-off or Railway Cron).

Reads stay staleness-gated either way; running this daily just moves the
recompute cost off the first reader after the window closes.

Run (local / Railway):
  cd services/api
  python -m scripts.refresh_featured            # rotate only if stale
  python -m scripts.refresh_featured --force    # rotate unconditionally
"""

import argparse
import asyncio
import os
import sys
from datetime import timedelta

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv  # noqa: E402

from app.services.featured import FeaturedRotation  # noqa: E402
from app.settings import get_settings  # noqa: E402
from app.stores.cache import TTLCache  # noqa: E402
from app.stores.postgres import close_db, init_db, ping_db  # noqa: E402
from app.stores.records import RecordRepository  # noqa: E402

load_dotenv()


async def main(force: bool) -> None:
    settings = get_settings()
    await init_db()
    await ping_db()

    cache = TTLCache()
    rotation = FeaturedRotation(
        RecordRepository(),
        cache,
        size=settings.featured_size,
        window=timedelta(hours=settings.featured_window_hours),
    )
    try:
        stale = await rotation.needs_refresh()
        if force or stale:
            featured = await rotation.update_daily_featured()
        else:
            featured = await rotation.get_featured()

        # Final output for Railway logs (single JSON-ish blob)
        print(
            {
                "ok": True,
                "rotated": force or stale,
                "featured": [
                    {"rank": f.featured_rank, "id": f.id, "name": f.name, "likes": f.likes}
                    for f in featured
                ],
                "next_refresh_at": str(rotation.next_refresh_at(featured)),
            }
        )
    finally:
        cache.close()
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rotate featured records")
    parser.add_argument("--force", action="store_true", help="Rotate even if the set is fresh")
    args = parser.parse_args()
    asyncio.run(main(force=args.force))
