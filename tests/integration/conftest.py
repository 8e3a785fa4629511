"""SQLite-backed store fixtures for integration tests.

Each test gets its own database file with the `users` table created from the
SQLAlchemy metadata, plus an async session factory whose engine is disposed on
teardown so pooled aiosqlite connections do not outlive the test loop.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

import pytest
import pytest_asyncio
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from safe_user.infrastructure.db.metadata import metadata
from safe_user.infrastructure.db.session import create_session_factory


@dataclass(frozen=True)
class SqliteStore:
    sync_url: str
    async_url: str

    def count_rows(self, *, user_id: str | None = None) -> int:
        statement = "SELECT COUNT(*) FROM users"
        params: dict[str, str] = {}
        if user_id is not None:
            statement += " WHERE UserId = :user_id"
            params["user_id"] = user_id
        engine = sa.create_engine(self.sync_url)
        try:
            with engine.connect() as connection:
                return int(connection.execute(sa.text(statement), params).scalar_one())
        finally:
            engine.dispose()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> SqliteStore:
    db_path = tmp_path / "users.db"
    store = SqliteStore(
        sync_url=f"sqlite+pysqlite:///{db_path}",
        async_url=f"sqlite+aiosqlite:///{db_path}",
    )
    engine = sa.create_engine(store.sync_url)
    metadata.create_all(engine)
    engine.dispose()
    return store


@pytest_asyncio.fixture
async def session_factory(
    sqlite_store: SqliteStore,
) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    factory = create_session_factory(sqlite_store.async_url, pool_size=5)
    yield factory
    await factory.kw["bind"].dispose()
