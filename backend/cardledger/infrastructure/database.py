"""Database Session Manager — async engine, scoped transactions, error mapping, health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - transaction() commits only when its block completes without raising
    - Every store call is bounded by timeout_seconds (driver, pool and SQLite busy timeouts)
    - All SQLAlchemy exceptions mapped to DatabaseError / StoreTimeoutError (core/errors.py)

Design Decisions:
    - Explicitly constructed and injected (FastAPI lifespan puts it on app.state):
      no module-level singleton, tests build their own against a temp SQLite file
    - expire_on_commit=False: records stay readable after the transaction closes
    - Pool sizing only for server databases: SQLite uses SQLAlchemy's default pool
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from cardledger.core.errors import DatabaseError, StoreTimeoutError
from cardledger.db.base import Base

logger = logging.getLogger(__name__)

_LOCK_MARKERS = ("database is locked", "timeout", "timed out", "canceling statement")


def _engine_kwargs(
    database_url: str, pool_size: int, max_overflow: int, timeout_seconds: float,
) -> dict:
    """Driver-specific engine options carrying the store timeout."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return {"connect_args": {"timeout": timeout_seconds}}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_timeout": timeout_seconds,
        "pool_recycle": 3600,
        "connect_args": {
            "timeout": timeout_seconds,
            "command_timeout": timeout_seconds,
        },
    }


def ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        timeout_seconds: float = 10.0,
    ):
        ensure_sqlite_directory(database_url)
        self.timeout_seconds = timeout_seconds
        self.engine = create_async_engine(
            database_url,
            pool_pre_ping=True,
            **_engine_kwargs(database_url, pool_size, max_overflow, timeout_seconds),
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}")
            raise DatabaseError("Integrity constraint violated", "commit")
        except PoolTimeoutError as e:
            await session.rollback()
            logger.error(f"DB pool timeout: {e}")
            raise StoreTimeoutError("connect", self.timeout_seconds)
        except OperationalError as e:
            await session.rollback()
            if any(marker in str(e).lower() for marker in _LOCK_MARKERS):
                logger.error(f"DB timeout: {e}")
                raise StoreTimeoutError("execute", self.timeout_seconds)
            logger.error(f"DB operational error: {e}")
            raise DatabaseError("Connection or operational error", "execute")
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}")
            raise DatabaseError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise DatabaseError("Database operation failed", "unknown")
        except TimeoutError as e:
            await session.rollback()
            logger.error(f"DB command timeout: {e}")
            raise StoreTimeoutError("execute", self.timeout_seconds)
        finally:
            await session.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Session wrapped in one transaction: commit on success, rollback on any error."""
        async with self.session() as db:
            async with db.begin():
                yield db

    async def create_all(self) -> None:
        """Create missing tables (local SQLite bootstrap and tests)."""
        import cardledger.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False
