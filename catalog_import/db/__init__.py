"""Database module."""
from catalog_import.db.base import (
    Base,
    TimestampMixin,
    engine,
    async_session_maker,
    build_engine,
    build_session_maker,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "engine",
    "async_session_maker",
    "build_engine",
    "build_session_maker",
]
