"""Cashbook Ledger - Async database engine."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from cashbook.core.config import get_settings


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given URL.

    Pool sizing only applies to server databases; SQLite uses its own pool.
    """
    kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        settings = get_settings()
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_max_overflow
    return create_async_engine(database_url, **kwargs)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to ``bind``."""
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# Create async engine
engine = build_engine(get_settings().database_url, echo=get_settings().debug)

# Async session factory
async_session_factory = build_session_factory(engine)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Initialize database - create all tables.

    Migrations are the normal path; this is for local setups and tests.
    """
    import cashbook.models  # noqa: F401 - register tables on SQLModel.metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
