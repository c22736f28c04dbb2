"""
Async engine and session lifecycle for EcoTrack storage.

One AsyncEngine per process, held on the `DatabaseService` class. Service
code never commits by hand: writes go through `get_transaction()`, which
commits when the block exits cleanly and rolls back on any exception.
Reads use `get_session()`, which never commits.

Pool selection
--------------
- in-memory SQLite   -> StaticPool (every session must see one connection)
- ENVIRONMENT=testing -> NullPool
- otherwise          -> AsyncAdaptedQueuePool sized from Config

On PostgreSQL each session sets `statement_timeout` so a stuck leaderboard
query cannot hold a connection forever.

>>> await DatabaseService.initialize()
>>> async with DatabaseService.get_transaction() as session:
...     session.add(CarbonActivity(...))
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Dict, Optional, Type

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool, Pool, StaticPool

from ecotrack.core.config.config import Config
from ecotrack.core.database.base import Base
from ecotrack.core.logging.logger import get_logger

logger = get_logger(__name__)

STATEMENT_TIMEOUT_MS = 30_000
POOL_RECYCLE_SECONDS = 1800
POOL_TIMEOUT_SECONDS = 30


class DatabaseInitializationError(RuntimeError):
    """The engine could not be created from the configured URL."""


class DatabaseNotInitializedError(RuntimeError):
    """A session was requested before `DatabaseService.initialize()`."""


@dataclass(frozen=True)
class EngineSettings:
    """What the engine was built with; fixed until shutdown."""

    url: str
    backend: str
    pool_class: Type[Pool]
    echo: bool = False
    pool_kwargs: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_postgres(self) -> bool:
        return self.backend == "postgresql"

    @classmethod
    def from_url(cls, url: Optional[str]) -> "EngineSettings":
        if not url or not isinstance(url, str):
            raise DatabaseInitializationError("A non-empty database URL is required")

        try:
            parsed = make_url(url)
        except ArgumentError as exc:
            raise DatabaseInitializationError(f"Unparseable database URL: {exc}") from exc

        backend = parsed.get_backend_name()
        pool_kwargs: Dict[str, Any] = {}

        if backend == "sqlite" and parsed.database in (None, "", ":memory:"):
            pool_class: Type[Pool] = StaticPool
        elif Config.is_testing():
            pool_class = NullPool
        else:
            pool_class = AsyncAdaptedQueuePool
            pool_kwargs = {
                "pool_size": Config.DATABASE_POOL_SIZE,
                "max_overflow": Config.DATABASE_MAX_OVERFLOW,
                "pool_recycle": POOL_RECYCLE_SECONDS,
                "pool_timeout": POOL_TIMEOUT_SECONDS,
            }

        return cls(
            url=url,
            backend=backend,
            pool_class=pool_class,
            echo=Config.DATABASE_ECHO,
            pool_kwargs=pool_kwargs,
        )


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000.0, 2)


class DatabaseService:
    """
    Class-level holder of the engine and session factory.

    Lifecycle: initialize(), create_schema(), shutdown().
    Sessions: get_session() for reads, get_transaction() for writes.
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _settings: Optional[EngineSettings] = None
    _init_lock: asyncio.Lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    async def initialize(cls, database_url: Optional[str] = None) -> None:
        """
        Build the engine; a second call is a no-op.

        `database_url` overrides Config.DATABASE_URL, which tests use to
        point at SQLite.
        """
        async with cls._init_lock:
            if cls._engine is not None:
                return

            try:
                settings = EngineSettings.from_url(database_url or Config.DATABASE_URL)
                engine = create_async_engine(
                    settings.url,
                    echo=settings.echo,
                    poolclass=settings.pool_class,
                    **settings.pool_kwargs,
                )
            except DatabaseInitializationError:
                logger.error("Database URL rejected", exc_info=True)
                raise
            except Exception as exc:
                logger.error(
                    "Engine creation failed",
                    extra={"error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(f"Engine creation failed: {exc}") from exc

            cls._settings = settings
            cls._engine = engine
            cls._session_factory = async_sessionmaker(engine, expire_on_commit=False)

            logger.info(
                "Database engine ready",
                extra={"backend": settings.backend, "pool_class": settings.pool_class.__name__},
            )

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose the engine. Safe to call when not initialized."""
        async with cls._init_lock:
            engine = cls._engine
            cls._engine = None
            cls._session_factory = None
            cls._settings = None

            if engine is None:
                return

            await engine.dispose()
            logger.info("Database engine disposed")

    @classmethod
    async def create_schema(cls) -> None:
        """Create every table registered on `Base.metadata`."""
        engine = cls._require_engine()

        # Importing the models registers their tables
        import ecotrack.database.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Schema created", extra={"tables": sorted(Base.metadata.tables)})

    @classmethod
    async def health_check(cls) -> bool:
        """`SELECT 1` against the engine; False on any connection failure."""
        if cls._engine is None:
            return False

        start = time.perf_counter()
        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (OperationalError, DBAPIError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error_type": type(exc).__name__, "duration_ms": _elapsed_ms(start)},
            )
            return False

        logger.debug("Database healthy", extra={"duration_ms": _elapsed_ms(start)})
        return True

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @classmethod
    def _require_engine(cls) -> AsyncEngine:
        if cls._engine is None:
            raise DatabaseNotInitializedError(
                "Call DatabaseService.initialize() before using the database"
            )
        return cls._engine

    @classmethod
    async def _open(cls) -> AsyncSession:
        cls._require_engine()
        assert cls._session_factory is not None and cls._settings is not None

        session = cls._session_factory()
        if cls._settings.is_postgres:
            await session.execute(text(f"SET LOCAL statement_timeout = {STATEMENT_TIMEOUT_MS}"))
        return session

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """Read-only session; closed on exit without committing."""
        session = await cls._open()
        try:
            yield session
        finally:
            await session.close()

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in one atomic transaction.

        Raises
        ------
        DatabaseNotInitializedError
            If the engine has not been built.
        Exception
            Whatever the block raised, after the rollback.
        """
        session = await cls._open()
        start = time.perf_counter()
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await session.rollback()
            # Domain errors roll back routinely; driver errors do not
            level_call = logger.error if isinstance(exc, DBAPIError) else logger.debug
            level_call(
                "Transaction rolled back",
                extra={"error_type": type(exc).__name__, "duration_ms": _elapsed_ms(start)},
            )
            raise
        finally:
            await session.close()


__all__ = [
    "DatabaseService",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
    "EngineSettings",
]
