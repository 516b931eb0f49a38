"""SQLAlchemy ORM models.

Models represent database tables:
- records: Biographical profiles (search + featured rotation)
"""

from app.models.record import Record

__all__ = ["Record"]
