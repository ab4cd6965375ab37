"""Database dependencies."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from streamify.database.client import get_session


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """Get a request-scoped database session.

    Route handlers commit explicitly once their unit of work succeeds; any
    exception rolls the session back.
    """
    async with get_session() as session:
        yield session
