"""Async SQLAlchemy engine and session factory.

Both are created lazily on first use and shared by every repository in the
process.  Call ``dispose_engine()`` on shutdown.
"""

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from feedback_db.config import get_async_url

# Pool sizing, overridable via PG_POOL_SIZE / PG_MAX_OVERFLOW
_POOL_SIZE = int(os.getenv("PG_POOL_SIZE", "5"))
_MAX_OVERFLOW = int(os.getenv("PG_MAX_OVERFLOW", "10"))

# One pool per process; SqlQuestionSource and SqlFeedbackStore share it
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the process-wide async engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            get_async_url(),
            pool_size=_POOL_SIZE,
            max_overflow=_MAX_OVERFLOW,
            # Check pooled connections before handing them out
            pool_pre_ping=True,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory the SQL adapters open sessions from."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            # Submission rows are read back (id) after commit
            expire_on_commit=False,
        )
    return _session_factory


async def dispose_engine() -> None:
    """Close the connection pool and forget the engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
