"""
Database Connection and Session Management.

This module sets up the asynchronous SQLAlchemy engine and session factory
shared by the repositories wired into the server.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from founderos_ai.agent_core.repos.models import Base
from founderos_ai.agent_core.repos.sql import create_engine, create_sessionmaker
from founderos_ai.server.core.config import settings

engine = create_engine(settings.database_url)
"""
engine:
    The global SQLAlchemy AsyncEngine instance, configured from ``DATABASE_URL``.
"""

async_session_maker = create_sessionmaker(engine)
"""
async_session_maker:
    A global factory for creating new AsyncSession instances.
    Bound to the `engine` and configured to NOT expire on commit.
"""


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the database.

    Creates all tables defined in the agent_core ORM metadata.
    NOTE: In production, Alembic migrations should be used instead of this function.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
