# src/scorekeeper/stores/sql.py

"""Document store backed by a SQL table via SQLAlchemy's async engine."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from scorekeeper.db.models import Base, DocumentRow
from scorekeeper.db.session import create_sessionmaker
from scorekeeper.exceptions import StoreReadError, StoreWriteError

from .base import LeaderboardStore

logger = logging.getLogger(__name__)


class SqlLeaderboardStore(LeaderboardStore):
    """
    Stores each document as a row in ``leaderboard_documents``.

    Every round-trip is bounded by ``timeout`` seconds; timeouts and database
    errors surface as ``StoreReadError``/``StoreWriteError``. Change
    notifications reach subscribers in this process only, after the write
    has been committed.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        timeout: float = 10.0,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        super().__init__()
        self._engine = engine
        self._sessions = session_factory or create_sessionmaker(engine)
        self._timeout = timeout

    async def initialize(self) -> None:
        """Create the documents table if it does not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Document table ready", extra={"url": str(self._engine.url)})

    async def close(self) -> None:
        await self._engine.dispose()

    async def get(self, key: str) -> str | None:
        try:
            return await asyncio.wait_for(self._read(key), timeout=self._timeout)
        except asyncio.TimeoutError:
            raise StoreReadError(key, f"timed out after {self._timeout}s") from None
        except SQLAlchemyError as e:
            logger.error("Document read failed", extra={"key": key}, exc_info=True)
            raise StoreReadError(key, str(e)) from e

    async def set(self, key: str, raw: str) -> None:
        try:
            version = await asyncio.wait_for(
                self._write(key, raw), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            raise StoreWriteError(key, f"timed out after {self._timeout}s") from None
        except SQLAlchemyError as e:
            logger.error("Document write failed", extra={"key": key}, exc_info=True)
            raise StoreWriteError(key, str(e)) from e

        logger.debug("Document written", extra={"key": key, "version": version})
        self._notify(key, raw)

    async def _read(self, key: str) -> str | None:
        async with self._sessions() as session:
            row = await session.get(DocumentRow, key)
            return row.payload if row is not None else None

    async def _write(self, key: str, raw: str) -> int:
        async with self._sessions() as session:
            try:
                row = await session.get(DocumentRow, key)
                if row is None:
                    row = DocumentRow(key=key, payload=raw)
                    session.add(row)
                else:
                    row.payload = raw
                    row.version += 1
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            return row.version
