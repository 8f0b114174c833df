"""
Database connection and session management.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


class Database:
    """Owns the async engine and session factory for one store."""

    def __init__(self, url: str, echo: bool = False, testing: bool = False):
        self.url = url
        self.engine = create_async_engine(
            url,
            echo=echo,
            poolclass=NullPool if testing else None,
        )
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def init(self) -> None:
        """Create tables that don't exist yet."""
        # Register the mapped classes on Base.metadata
        from . import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"DB ready at {self.engine.url.render_as_string(hide_password=True)}")

    async def dispose(self) -> None:
        await self.engine.dispose()
