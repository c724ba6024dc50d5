"""
Database pool management.

Creates the pooled async engine from ``DatabaseSettings`` and exposes
acquire / authenticate / close operations.
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from bakery.infrastructure.database.errors import ConnectivityError, to_store_error
from bakery.infrastructure.database.models import Base
from bakery.settings.database import DatabaseSettings


logger = logging.getLogger(__name__)


class DatabasePool:
    """
    Owns the SQLAlchemy engine and its connection pool.

    Usage:
        pool = DatabasePool(settings.database)
        try:
            await pool.authenticate()
            ...
        finally:
            await pool.close()
    """

    def __init__(self, settings: DatabaseSettings, engine: Optional[AsyncEngine] = None):
        """
        Initialize pool manager.

        Args:
            settings: Database settings
            engine: Pre-built engine (tests); created lazily otherwise
        """
        self.settings = settings
        self._engine = engine

    # =========================================================================
    # ENGINE CREATION
    # =========================================================================

    def create_engine(self) -> AsyncEngine:
        """
        Create async SQLAlchemy engine.

        Raises:
            ConfigurationError: If required settings are missing

        Returns:
            Configured async engine
        """
        url = self.settings.sqlalchemy_url()
        backend = url.get_backend_name()
        logger.info(f"Creating database engine: {self.settings.safe_url()}")

        options = {
            "echo": self.settings.echo_sql,
            "pool_pre_ping": True,  # Test connections before using
        }
        if backend != "sqlite":
            # pool_min stays open; overflow allows up to pool_max in total
            options.update(
                pool_size=self.settings.pool_min,
                max_overflow=self.settings.pool_max - self.settings.pool_min,
                pool_timeout=self.settings.acquire_timeout,
                pool_recycle=self.settings.pool_recycle,
                connect_args=self.settings.connect_args(backend),
            )

        return create_async_engine(url, **options)

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the engine."""
        if self._engine is None:
            self._engine = self.create_engine()
        return self._engine

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    async def connect(self) -> AsyncConnection:
        """
        Acquire a working connection from the pool.

        Raises:
            ConnectivityError: If no connection is available within
                the acquire timeout or the store rejects it
        """
        try:
            return await asyncio.wait_for(
                self.engine.connect().start(), timeout=self.settings.acquire_timeout
            )
        except asyncio.TimeoutError as e:
            raise ConnectivityError(
                f"No database connection within {self.settings.acquire_timeout}s"
            ) from e
        except (SQLAlchemyError, ConnectionError) as e:
            raise ConnectivityError(str(to_store_error(e))) from e

    async def authenticate(self) -> None:
        """
        Verify the store is reachable and credentials are accepted.

        Raises:
            ConnectivityError: On any failure, bounded by the acquire timeout
        """
        logger.info("🔗 Connecting to database...")

        async def ping() -> None:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        try:
            await asyncio.wait_for(ping(), timeout=self.settings.acquire_timeout)
        except asyncio.TimeoutError as e:
            raise ConnectivityError(
                f"Database not reachable within {self.settings.acquire_timeout}s"
            ) from e
        except (SQLAlchemyError, ConnectionError) as e:
            raise ConnectivityError(str(to_store_error(e))) from e

        logger.info("✅ Database connection established")

    # =========================================================================
    # SCHEMA / LIFECYCLE
    # =========================================================================

    async def create_schema(self) -> None:
        """Create the order tables if they don't exist."""
        logger.info("Initializing database schema...")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database schema ready")

    async def close(self) -> None:
        """Dispose all pooled connections. Safe to call more than once."""
        if self._engine is not None:
            logger.info("Closing database connections...")
            await self._engine.dispose()
            self._engine = None
            logger.info("✅ Database connection closed")
