"""Async engine and per-request session.

Services commit each step themselves (the upload flow persists the file row
before scanning), so the request dependency only rolls back what a failed
request left open.
"""
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from scanvault.core.config import get_settings

settings = get_settings()
engine = create_async_engine(settings.database_url, echo=settings.debug, pool_pre_ping=True)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def ping(bind: AsyncEngine | None = None) -> None:
    """Round-trip SELECT 1; raises if the database is unreachable."""
    async with (bind or engine).connect() as conn:
        await conn.execute(text("SELECT 1"))
