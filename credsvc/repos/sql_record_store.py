"""SQL implementation of RecordStore (SQLite by default)."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import insert, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from credsvc.core.errors import AlreadyIssued, StorageError
from credsvc.core.metrics import STORE_ERRORS
from credsvc.db.engine import (
    Base,
    build_engine,
    build_session_factory,
    ensure_sqlite_directory,
)
from credsvc.db.tables import CredentialRow
from credsvc.models.credential import CredentialRecord

logger = logging.getLogger(__name__)


class SqlRecordStore:
    """Satisfies the RecordStore Protocol using SQLAlchemy's async engine.

    The schema is created by ``init()``, which the app lifespan calls on
    startup; every operation also calls it, so a store used before
    startup (scripts, tests) creates its table on first touch.  Creation
    uses CREATE TABLE IF NOT EXISTS and is safe on every process start.

    Each operation runs in its own short transaction.  ``save`` is a
    plain INSERT: the primary key on ``credentials.id`` rejects a
    concurrent duplicate, and that IntegrityError is reported as
    AlreadyIssued.
    """

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        self._engine = build_engine(database_url, echo=echo)
        self._sessions = build_session_factory(self._engine)
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def url(self) -> str:
        return self._engine.url.render_as_string(hide_password=True)

    async def init(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            try:
                ensure_sqlite_directory(self._engine)
                async with self._engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except (SQLAlchemyError, OSError) as e:
                STORE_ERRORS.labels(operation="init").inc()
                logger.error("Failed to initialize record store url=%s: %s", self.url, e)
                raise StorageError("init") from e
            self._initialized = True
            logger.info("Record store initialized  url=%s", self.url)

    async def close(self) -> None:
        await self._engine.dispose()
        self._initialized = False
        logger.info("Record store closed  url=%s", self.url)

    async def ping(self) -> None:
        await self.init()
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            STORE_ERRORS.labels(operation="ping").inc()
            raise StorageError("ping") from e

    async def exists(self, credential_id: str) -> bool:
        await self.init()
        stmt = select(CredentialRow.id).where(CredentialRow.id == credential_id)
        try:
            async with self._sessions() as session:
                found = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            STORE_ERRORS.labels(operation="exists").inc()
            logger.error("Failed to check credential %s: %s", credential_id, e)
            raise StorageError("exists") from e
        return found is not None

    async def get(self, credential_id: str) -> CredentialRecord | None:
        await self.init()
        stmt = select(CredentialRow.data).where(CredentialRow.id == credential_id)
        try:
            async with self._sessions() as session:
                raw = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            STORE_ERRORS.labels(operation="get").inc()
            logger.error("Failed to get credential %s: %s", credential_id, e)
            raise StorageError("get") from e

        if raw is None:
            return None
        try:
            return CredentialRecord.from_json(credential_id, raw)
        except (ValueError, AttributeError) as e:
            STORE_ERRORS.labels(operation="get").inc()
            logger.error("Stored data for credential %s is not a JSON object", credential_id)
            raise StorageError("get", "stored record is corrupt") from e

    async def save(self, credential_id: str, record: CredentialRecord) -> None:
        await self.init()
        stmt = insert(CredentialRow).values(id=credential_id, data=record.to_json())
        try:
            async with self._sessions() as session, session.begin():
                await session.execute(stmt)
        except IntegrityError as e:
            raise AlreadyIssued(credential_id) from e
        except SQLAlchemyError as e:
            STORE_ERRORS.labels(operation="save").inc()
            logger.error("Failed to save credential %s: %s", credential_id, e)
            raise StorageError("save") from e
