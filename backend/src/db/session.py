"""Async SQLAlchemy storage handle and session lifecycle."""
import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import Settings
from services.exceptions import StorageTimeoutError, StorageUnavailableError

logger = logging.getLogger(__name__)

AFTER_COMMIT_KEY = "after_commit"


def after_commit(session: AsyncSession, callback: Callable[[], Awaitable[None]]) -> None:
    """
    Schedule callback to run once the session's transaction has committed.

    Callbacks are dropped if the unit of work rolls back. Sessions not opened
    through Database.session() never run them.
    """
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)


async def _run_after_commit(session: AsyncSession) -> None:
    for callback in session.info.pop(AFTER_COMMIT_KEY, []):
        await callback()


class Database:
    """
    Explicit storage handle: one engine plus its session factory.

    Created with Database.open() at application start and disposed with
    close(). Every unit of work runs through session(), which commits on
    success, rolls back on any error and enforces the storage timeout.
    """

    def __init__(self, engine: AsyncEngine, timeout_seconds: float) -> None:
        self.engine = engine
        self.timeout_seconds = timeout_seconds
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    async def open(
        cls,
        settings: Settings,
        retries: int | None = None,
        retry_delay: float | None = None,
    ) -> "Database":
        """
        Create the engine and verify connectivity.

        Args:
            settings: Application settings (database_url, storage timeout).
            retries: Connection attempts before failing; defaults to settings.
            retry_delay: Seconds between attempts; defaults to settings.

        Raises:
            StorageUnavailableError: If no attempt succeeds.
        """
        attempts = max(1, retries if retries is not None else settings.db_connect_retries)
        delay = retry_delay if retry_delay is not None else settings.db_connect_retry_delay
        engine = create_async_engine(
            settings.database_url,
            echo=False,
            pool_pre_ping=True,
        )
        for attempt in range(1, attempts + 1):
            try:
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                break
            except (OperationalError, InterfaceError, OSError) as e:
                logger.warning(
                    "database_connect_failed",
                    extra={"attempt": attempt, "max_attempts": attempts, "error": str(e)},
                )
                if attempt == attempts:
                    await engine.dispose()
                    raise StorageUnavailableError(
                        f"Could not connect to database after {attempts} attempts",
                    ) from e
                await asyncio.sleep(delay)
        logger.info("database_connected", extra={"attempts": attempt})
        return cls(engine, settings.storage_timeout_seconds)

    async def close(self) -> None:
        """Dispose the engine and its connection pool."""
        await self.engine.dispose()
        logger.info("database_closed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session bound to one all-or-nothing transaction."""
        async with self.session_factory() as session:
            try:
                async with asyncio.timeout(self.timeout_seconds):
                    yield session
                    await session.commit()
            except (TimeoutError, PoolTimeoutError) as e:
                await session.rollback()
                logger.warning("storage_timeout", extra={"timeout": self.timeout_seconds})
                raise StorageTimeoutError(self.timeout_seconds) from e
            except (OperationalError, InterfaceError) as e:
                await session.rollback()
                logger.warning("storage_unavailable", extra={"error": str(e)})
                raise StorageUnavailableError(str(e.orig) if e.orig else str(e)) from e
            except Exception:
                await session.rollback()
                raise
            await _run_after_commit(session)


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession]:
    """Yield an async database session from the app's storage handle."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
