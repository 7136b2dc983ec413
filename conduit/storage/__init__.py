"""Engine and session lifecycle for the Conduit database.

One engine per process, built on first use from settings. Route
handlers, the workflow runner and the cron runner each open short-lived
sessions with :func:`get_session` and commit explicitly; repositories
only flush.
"""

import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from conduit.settings import Settings, get_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
# Reentrant: get_session_factory() builds the engine while holding it
_init_lock = threading.RLock()


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Process-wide async engine (asyncpg), created lazily."""
    global _engine

    if _engine is None:
        with _init_lock:
            if _engine is None:
                settings = settings or get_settings()
                _engine = create_async_engine(
                    str(settings.database_url),
                    pool_size=settings.database_pool_size,
                    max_overflow=settings.database_max_overflow,
                    pool_timeout=settings.database_pool_timeout,
                    pool_recycle=settings.database_pool_recycle,
                    pool_pre_ping=True,
                    echo=settings.debug and settings.environment == "development",
                    connect_args={"server_settings": {"application_name": f"conduit-{settings.conduit_role}"}},
                )

    return _engine


def get_session_factory(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the process engine.

    Sessions do not expire on commit: run records and integrations are
    read after the commit that persisted them.
    """
    global _session_factory

    if _session_factory is None:
        with _init_lock:
            if _session_factory is None:
                _session_factory = async_sessionmaker(
                    bind=get_engine(settings),
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )

    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Open a session; the caller commits, the session is always closed.

    Usage:
        async with get_session() as session:
            run = await WorkflowRunRepository(session).create(...)
            await session.commit()
    """
    session = get_session_factory()()
    try:
        yield session
    finally:
        await session.close()


async def init_db() -> None:
    """Fail fast at startup when the database is unreachable."""
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_tables() -> None:
    """Create missing tables (``conduit init-db``)."""
    from conduit.storage import entities  # noqa: F401  (registers mappers)
    from conduit.storage.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine at shutdown; the next use builds a new one."""
    global _engine, _session_factory

    with _init_lock:
        engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()


__all__ = [
    "close_db",
    "create_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
]
