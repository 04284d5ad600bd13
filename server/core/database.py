"""Async database service with SQLModel and SQLAlchemy 2.0.

Two engines point at the same SQLite file:
- an async engine (aiosqlite) for the result cache table, used from request
  handlers;
- a blocking engine without pooling for benchmark runs, so every run gets its
  own connection that is closed when the run ends.

Both apply the same performance profile to every new connection.
"""

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, delete, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, select

from core.config import Settings
from core.exceptions import StorageError, StorageUnavailable
from core.logging import get_logger
from models.benchmark import CachedResult, WorkloadRecord  # noqa: F401 - registers tables
from services.benchmark.store import SQLiteWorkloadStore

logger = get_logger(__name__)


class Database:
    """Async database service with SQLModel."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = None
        self.sync_engine: Optional[Engine] = None
        self.async_session = None

    def _connection_pragmas(self):
        """Per-connection pragmas; these do not persist in the database file."""
        return (
            "PRAGMA synchronous = NORMAL",
            f"PRAGMA cache_size = -{self.settings.database_cache_size_kb}",
            f"PRAGMA busy_timeout = {self.settings.database_busy_timeout_ms}",
            "PRAGMA temp_store = MEMORY",
            f"PRAGMA mmap_size = {self.settings.database_mmap_size}",
        )

    def _install_pragmas(self, engine: Engine) -> None:
        pragmas = self._connection_pragmas()

        @event.listens_for(engine, "connect")
        def apply_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            try:
                for pragma in pragmas:
                    cursor.execute(pragma)
            finally:
                cursor.close()

    async def startup(self):
        """Open the database, apply the performance profile and create tables.

        Raises:
            StorageUnavailable: If the database cannot be opened or initialized
        """
        logging.getLogger("aiosqlite").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.dialects").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)

        try:
            self.engine = create_async_engine(
                self.settings.database_url,
                echo=self.settings.database_echo,
            )
            self._install_pragmas(self.engine.sync_engine)

            self.sync_engine = create_engine(
                self.settings.sync_database_url,
                echo=self.settings.database_echo,
                poolclass=NullPool,
            )
            self._install_pragmas(self.sync_engine)

            self.async_session = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            # File-level settings persist once set. auto_vacuum only takes
            # effect on a database that has no tables yet.
            with self.sync_engine.connect() as conn:
                conn.exec_driver_sql("PRAGMA auto_vacuum = INCREMENTAL")
                conn.exec_driver_sql("PRAGMA journal_mode = WAL")
                conn.commit()

            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)

            with self.sync_engine.connect() as conn:
                conn.exec_driver_sql("PRAGMA incremental_vacuum")
                conn.commit()

            logger.info("Database initialized successfully",
                        path=self.settings.database_path)

        except (SQLAlchemyError, OSError) as e:
            logger.error("Database startup failed", error=str(e))
            raise StorageUnavailable(self.settings.database_path, str(e)) from e

    async def shutdown(self):
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()
        if self.sync_engine:
            self.sync_engine.dispose()
        logger.info("Database connections closed")

    @asynccontextmanager
    async def get_session(self):
        """Get async database session."""
        if not self.async_session:
            raise StorageError("Database not initialized")

        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def ping(self) -> bool:
        """Check database connectivity."""
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, StorageError):
            return False

    # ============================================================================
    # Result Cache
    # ============================================================================

    async def get_latest_result(self) -> Optional[CachedResult]:
        """Get the most recent cached benchmark result."""
        try:
            async with self.get_session() as session:
                stmt = select(CachedResult).order_by(CachedResult.timestamp.desc()).limit(1)
                result = await session.execute(stmt)
                return result.scalar_one_or_none()

        except SQLAlchemyError as e:
            logger.error("Failed to read cached result", error=str(e))
            raise StorageError(f"Failed to read cached result: {e}") from e

    async def replace_result(self, payload: str, timestamp: int) -> CachedResult:
        """Delete every cached result and store a new one in one transaction."""
        try:
            async with self.get_session() as session:
                await session.execute(delete(CachedResult))
                entry = CachedResult(result=payload, timestamp=timestamp)
                session.add(entry)
                await session.commit()
                return entry

        except SQLAlchemyError as e:
            logger.error("Failed to store cached result", error=str(e))
            raise StorageError(f"Failed to store cached result: {e}") from e

    async def count_workload_records(self, session_id: Optional[str] = None) -> int:
        """Count workload rows, optionally only those of one run."""
        try:
            async with self.get_session() as session:
                stmt = text("SELECT COUNT(*) FROM comments")
                params = {}
                if session_id is not None:
                    stmt = text("SELECT COUNT(*) FROM comments WHERE test_session = :session_id")
                    params = {"session_id": session_id}
                result = await session.execute(stmt, params)
                return result.scalar_one()

        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count workload records: {e}") from e

    # ============================================================================
    # Workload
    # ============================================================================

    @contextmanager
    def workload_store(self) -> Iterator[SQLiteWorkloadStore]:
        """Open a dedicated connection for one benchmark run.

        The connection is closed on every exit path, including errors.
        """
        if self.sync_engine is None:
            raise StorageError("Database not initialized")

        try:
            connection = self.sync_engine.connect()
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot open workload connection: {e}") from e

        try:
            yield SQLiteWorkloadStore(connection, self.settings.database_path)
        finally:
            connection.close()
