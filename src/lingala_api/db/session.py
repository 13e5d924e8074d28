"""
lingala_api.db.session

Engine and session factory.

Responsibilities:
- Build the async engine from `LINGALA_DATABASE_URL`; SQLite connections get
  `PRAGMA foreign_keys=ON` so course/module/lesson cascades are enforced.
- Hand out sessions that keep attributes loaded after commit (routes serialize
  rows after the service commits).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lingala_api.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    options: dict[str, Any] = {}
    if not settings.database_url.startswith("sqlite"):
        options["pool_pre_ping"] = True
    engine = create_async_engine(settings.database_url, **options)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _sqlite_on_connect)
    return engine


def _sqlite_on_connect(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
