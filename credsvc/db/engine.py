"""Async SQLAlchemy engine and session factory.

Each service process builds exactly one engine, owned by its
SqlRecordStore and disposed when the store closes.  Nothing here is a
module-level singleton: the app factory decides which database (if any)
a process talks to.

The default URL is a local SQLite file driven through aiosqlite, but any
SQLAlchemy async URL works (e.g. postgresql+asyncpg://...).
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    url = make_url(database_url)

    if url.get_backend_name() != "sqlite":
        return create_async_engine(url, echo=echo, pool_size=5, max_overflow=10)

    engine = create_async_engine(
        url,
        echo=echo,
        connect_args={"timeout": 15},  # seconds to wait on a locked database
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, _record) -> None:
        # WAL lets readers proceed while a writer holds the lock
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def ensure_sqlite_directory(engine: AsyncEngine) -> None:
    """Create the parent directory of a SQLite file; SQLite will not."""
    url = engine.url
    if url.get_backend_name() != "sqlite":
        return
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
