"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: DB session, record repository, ORM operations
- In-process cache: TTL policies, eviction timers

No business/ranking logic in stores - that belongs in services.
"""
