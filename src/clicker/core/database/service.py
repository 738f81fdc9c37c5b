"""
Database Service - Core Infrastructure Layer

Purpose
-------
Own the single AsyncEngine and session factory used by the database save
slot. Provides atomic transactions and schema creation for the small set
of tables the game persists.

Responsibilities
----------------
- Initialize and dispose a single AsyncEngine (idempotent, lock-protected)
- Provide async context managers for plain sessions and atomic transactions
- Enforce transaction discipline: commit on success, rollback on exception
- Create missing tables from `Base.metadata`
- Lightweight `SELECT 1` health check

Non-Responsibilities
--------------------
- Save blob encoding (persistence codec)
- Domain logic, business rules, or Discord integration

Configuration
-------------
- DATABASE_URL  (default: sqlite+aiosqlite file under the data directory)
- DATABASE_ECHO (default: False)
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from clicker.core.config.config import Config
from clicker.core.database.base import Base
from clicker.core.logging.logger import get_logger

logger = get_logger(__name__)


class DatabaseInitializationError(RuntimeError):
    """Raised when the engine cannot be created."""


class DatabaseNotInitializedError(RuntimeError):
    """Raised when a session is requested before `initialize()`."""


class DatabaseService:
    """
    Classmethod singleton around the async engine.

    Usage
    -----
    >>> await DatabaseService.initialize()
    >>> await DatabaseService.create_all()
    >>> async with DatabaseService.get_transaction() as session:
    >>>     session.add(record)
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _init_lock: asyncio.Lock = asyncio.Lock()
    _url: Optional[str] = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @classmethod
    async def initialize(cls, url: Optional[str] = None, echo: Optional[bool] = None) -> None:
        """
        Create the engine and session factory.

        Raises
        ------
        DatabaseInitializationError
            If engine creation fails.
        """
        async with cls._init_lock:
            if cls._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            url = url or Config.DATABASE_URL
            echo = Config.DATABASE_ECHO if echo is None else echo

            try:
                cls._engine = create_async_engine(url, echo=echo)
                cls._session_factory = async_sessionmaker(
                    bind=cls._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )
                cls._url = url
            except (SQLAlchemyError, ValueError) as exc:
                logger.error(
                    "DatabaseService initialization failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

            logger.info(
                "DatabaseService initialized successfully",
                extra={"url_scheme": url.split("://")[0] if "://" in url else "unknown"},
            )

    @classmethod
    async def create_all(cls) -> None:
        """Create every table registered on `Base.metadata` that does not exist."""
        cls._ensure_initialized()
        assert cls._engine is not None

        # Registers the model tables on Base.metadata.
        import clicker.database.models  # noqa: F401

        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database schema ensured",
            extra={"tables": sorted(Base.metadata.tables)},
        )

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose the engine. Safe to call when not initialized."""
        async with cls._init_lock:
            if cls._engine is None:
                logger.debug("DatabaseService not initialized; nothing to shutdown")
                return
            try:
                await cls._engine.dispose()
                logger.info("DatabaseService shutdown complete")
            finally:
                cls._engine = None
                cls._session_factory = None
                cls._url = None

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._engine is not None

    @classmethod
    def _ensure_initialized(cls) -> None:
        if cls._engine is None or cls._session_factory is None:
            raise DatabaseNotInitializedError("DatabaseService is not initialized")

    # ========================================================================
    # Health Check
    # ========================================================================

    @classmethod
    async def health_check(cls) -> bool:
        if cls._engine is None:
            return False
        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False

    # ========================================================================
    # Sessions
    # ========================================================================

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session without automatic commit, for reads.

        Raises
        ------
        DatabaseNotInitializedError
            If `initialize()` has not run.
        """
        cls._ensure_initialized()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                yield session
            finally:
                await session.close()
                logger.debug(
                    "Database session closed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in an atomic transaction.

        Commits on clean exit; rolls back and re-raises on any exception.
        Never call `session.commit()` inside the block.
        """
        cls._ensure_initialized()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                yield session
                await session.commit()
                logger.debug(
                    "Transaction committed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )
            except BaseException as exc:
                await session.rollback()
                logger.warning(
                    "Transaction rolled back",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )
                raise
