"""Async database connection using SQLAlchemy (supports SQLite and PostgreSQL)."""

import asyncio
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import InterfaceError, InvalidRequestError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# Register tables on SQLModel.metadata before create_all
from tipping import models  # noqa: F401

logger = logging.getLogger(__name__)


def get_database_url(url: str) -> str:
    """Convert database URL to async format."""
    # SQLite
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    # PostgreSQL
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return url


class Database:
    """
    Owns the async engine and session factory for one store.

    Built once at startup and handed to the store, the scheduler and the
    routes. Tests build their own instance against in-memory SQLite.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = get_database_url(url)
        self.is_sqlite = self.url.startswith("sqlite")

        engine_kwargs = {
            "echo": echo,
        }

        if self.is_sqlite:
            # SQLite-specific settings
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            engine_kwargs["poolclass"] = StaticPool
        else:
            # PostgreSQL-specific settings
            engine_kwargs["pool_pre_ping"] = True  # Verify connection before checkout
            engine_kwargs["pool_size"] = 5
            engine_kwargs["max_overflow"] = 10
            engine_kwargs["pool_recycle"] = 300  # Hosted Postgres drops idle connections
            engine_kwargs["pool_timeout"] = 30
            engine_kwargs["pool_reset_on_return"] = "rollback"
            # Statement timeout: 30s in milliseconds
            engine_kwargs["connect_args"] = {
                "server_settings": {"statement_timeout": "30000"}
            }

        self.engine = create_async_engine(self.url, **engine_kwargs)
        self.session_maker = sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    async def init_db(self) -> None:
        """Initialize database tables."""
        logger.info("Initializing database tables...")
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database tables created successfully.")

    async def close(self) -> None:
        """Close database connections."""
        logger.info("Closing database connections...")
        await self.engine.dispose()
        logger.info("Database connections closed.")

    @asynccontextmanager
    async def session(self, max_retries: int = 3, retry_delay: float = 0.5):
        """
        Context manager that provides a session with automatic retry on connection errors.

        Example:
            async with database.session() as session:
                result = await session.execute(...)
                await session.commit()

        Retries only happen on session CREATION failure. If a connection drops
        DURING execution, the exception propagates to the caller.
        """
        last_error = None
        current_delay = retry_delay
        session = None

        for attempt in range(max_retries):
            try:
                session = self.session_maker()
                # Test the connection is alive before yielding
                await session.connection()
                break
            except (InterfaceError, OperationalError, InvalidRequestError) as e:
                last_error = e
                if session is not None:
                    await session.close()
                    session = None

                if attempt < max_retries - 1:
                    logger.warning(
                        f"Database connection error (attempt {attempt + 1}/{max_retries}): {e}. "
                        f"Retrying in {current_delay}s..."
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= 2  # Exponential backoff
                    continue
                raise

        if session is None:
            if last_error:
                raise last_error
            raise RuntimeError("Failed to create database session after retries")

        try:
            yield session
        finally:
            await session.close()
