"""
Database Configuration for Gemini Chat

Async SQLAlchemy engine and session management. One DatabaseManager is
created per process (API server or queue worker) at startup and closed on
shutdown; components receive its session factory explicitly.
"""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine,
)
from sqlalchemy import text
from sqlmodel import SQLModel

from gemini_chat.config.settings import Settings, get_settings
from gemini_chat.infrastructure.exceptions import ConfigurationError

# Register all tables with SQLModel.metadata
from gemini_chat.infrastructure.db import models  # noqa: F401


class DatabaseManager:
    """
    Owns the async engine (connection pool) and the session factory.

    An engine may be injected directly; otherwise one is built lazily from
    DATABASE_URL.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        self._settings = settings or get_settings()
        self._engine: Optional[AsyncEngine] = engine
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        if engine is not None:
            self._session_factory = self._build_session_factory(engine)

    @property
    def engine(self) -> AsyncEngine:
        """Get or create async engine with connection pooling."""
        if self._engine is None:
            self._initialize_engine()
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create session factory."""
        if self._session_factory is None:
            self._initialize_engine()
        return self._session_factory

    def _initialize_engine(self) -> None:
        """Initialize async engine with pooling configuration."""
        database_url = self._settings.async_database_url
        if not database_url:
            raise ConfigurationError(
                "DATABASE_URL is required",
                missing_keys=["DATABASE_URL"]
            )

        self._engine = create_async_engine(
            database_url,
            echo=self._settings.database_echo,
            pool_size=self._settings.database_pool_size,
            max_overflow=self._settings.database_max_overflow,
            pool_timeout=self._settings.database_pool_timeout,
            pool_pre_ping=True,  # Verify connections before use
        )
        self._session_factory = self._build_session_factory(self._engine)

    @staticmethod
    def _build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_tables(self) -> None:
        """Create all tables from SQLModel metadata."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def ping(self) -> None:
        async with self.session_factory() as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        """Close engine and dispose of connection pool."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


# Process-wide instance, set by init_db()
_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get or create the database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection for async database sessions.

    Usage in FastAPI:
        @app.get("/items")
        async def get_items(session: AsyncSession = Depends(get_session)):
            ...

    Yields:
        AsyncSession: Database session that auto-closes after use
    """
    db = get_db_manager()
    async with db.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> DatabaseManager:
    """Initialize database connection pool (called on process startup)."""
    db = get_db_manager()
    # Verify connection works
    await db.ping()
    return db


async def close_db() -> None:
    """Close database connection pool (called on process shutdown)."""
    global _db_manager
    if _db_manager is not None:
        await _db_manager.close()
        _db_manager = None
