"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support for PostgreSQL.

The engine is owned by a Database handle that the application lifespan
constructs and disposes; nothing here opens a connection at import time.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

# Create declarative base for models
Base = declarative_base()


class Database:
    """Explicitly constructed store handle (engine + session factory)."""

    def __init__(self, url: str, echo: bool = False, pool_size: int = 20, max_overflow: int = 10, **engine_kwargs):
        if not url.startswith("sqlite"):
            engine_kwargs.setdefault("pool_size", pool_size)
            engine_kwargs.setdefault("max_overflow", max_overflow)
        self.engine = create_async_engine(url, echo=echo, future=True, **engine_kwargs)

        # Create async session factory
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request):
    """
    FastAPI dependency for database sessions.

    Yields an async database session from the application's Database handle
    and ensures it's properly closed.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
