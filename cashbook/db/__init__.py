"""Database module - async engine and session management."""

from cashbook.db.engine import (
    async_session_factory,
    build_engine,
    build_session_factory,
    close_db,
    engine,
    init_db,
)

__all__ = [
    "engine",
    "async_session_factory",
    "build_engine",
    "build_session_factory",
    "close_db",
    "init_db",
]
