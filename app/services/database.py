"""
Async database service.

Owns the SQLAlchemy engine and session factory shared by the user directory
and the conversation store. Startup connects with a bounded retry loop; a
database that never comes up is fatal.
"""

import asyncio
import logging
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.errors import ConfigurationError, PersistenceError
from app.models import Base

logger = logging.getLogger("chatapp.database")


class Database:
    """
    Async database service for users and conversations.

    Features:
    - Async connection pooling with pre-ping (recovers dropped connections)
    - Automatic table creation
    - Bounded, logged connect retries at startup
    """

    def __init__(self):
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None
        self._connected = False

    @property
    def is_available(self) -> bool:
        """Check if database is configured and connected."""
        return self._connected and self.engine is not None

    @staticmethod
    def _engine_options(url: str) -> dict[str, Any]:
        options: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
        if make_url(url).get_backend_name() != "sqlite":
            options.update(pool_size=5, max_overflow=10)
        return options

    async def connect(self, url: str | None = None) -> bool:
        """
        Establish connection and create tables if needed.

        Args:
            url: Database URL; defaults to settings.DATABASE_URL.

        Returns:
            True if connection successful, False otherwise.
        """
        url = url or settings.DATABASE_URL
        if not url:
            raise ConfigurationError("DATABASE_URL is not configured")

        try:
            self.engine = create_async_engine(url, **self._engine_options(url))
            self.session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            self._connected = True
            logger.info("Connected to database: %s", settings.sanitize_url(url))
            return True
        except Exception as e:
            logger.error("Failed to connect to database: %s", e)
            if self.engine is not None:
                await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            self._connected = False
            return False

    async def connect_with_retry(
        self,
        url: str | None = None,
        max_attempts: int | None = None,
        delay: float | None = None,
    ) -> None:
        """
        Connect, retrying with exponential backoff.

        Raises:
            ConfigurationError: If no database URL is configured.
            PersistenceError: If every attempt fails.
        """
        max_attempts = max_attempts or settings.DB_CONNECT_MAX_ATTEMPTS
        delay = settings.DB_CONNECT_RETRY_DELAY_SECONDS if delay is None else delay

        for attempt in range(1, max_attempts + 1):
            logger.info("Database connection attempt %d/%d", attempt, max_attempts)
            if await self.connect(url):
                return
            if attempt < max_attempts:
                wait = delay * (2 ** (attempt - 1))
                logger.warning("Retrying database connection in %.1fs", wait)
                await asyncio.sleep(wait)

        raise PersistenceError(f"Could not connect to database after {max_attempts} attempts")

    def sessions(self) -> async_sessionmaker[AsyncSession]:
        """Return the session factory, failing if the database is down."""
        if not self.is_available or self.session_factory is None:
            raise PersistenceError("Database not connected")
        return self.session_factory

    async def close(self) -> None:
        """Close database connection pool."""
        if self.engine:
            await self.engine.dispose()
            self._connected = False
            logger.info("Database connection closed")


# Global instance
database = Database()
