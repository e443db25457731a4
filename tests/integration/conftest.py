"""Pytest fixtures for storage integration tests.

Each test gets a fresh SQLite database file through aiosqlite, with the
schema created from the ORM metadata.
"""
import pytest_asyncio

from catalog_import.db.base import Base, build_engine, build_session_maker
from catalog_import.db.operations import SqlAlchemyCatalogStore


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """Async engine on a throwaway SQLite file with all tables created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(sqlite_engine):
    return build_session_maker(sqlite_engine)


@pytest_asyncio.fixture
async def sql_store(session_maker):
    return SqlAlchemyCatalogStore(session_maker)
