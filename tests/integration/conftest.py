"""Integration test fixtures using testcontainers.

Provides a real PostgreSQL container for repository and discovery tests
without requiring external infrastructure. Tests skip when
testcontainers or a container runtime is unavailable.
"""

import os
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

import conduit.storage.entities  # noqa: F401 (registers all models with Base.metadata)
from conduit.storage.models import Base


def _configure_container_runtime() -> None:
    """Point testcontainers at a rootless Podman socket when Docker is absent."""
    if os.environ.get("DOCKER_HOST") or os.path.exists("/var/run/docker.sock"):
        return
    linux_socket = f"/run/user/{os.getuid()}/podman/podman.sock"
    if os.path.exists(linux_socket):
        os.environ["DOCKER_HOST"] = f"unix://{linux_socket}"
        os.environ.setdefault("TESTCONTAINERS_RYUK_DISABLED", "true")


_configure_container_runtime()


# =============================================================================
# POSTGRESQL CONTAINER
# =============================================================================


@pytest.fixture(scope="session")
def postgres_container() -> Generator[Any, None, None]:
    """Start a PostgreSQL container shared by all integration tests."""
    postgres = pytest.importorskip("testcontainers.postgres")

    try:
        with postgres.PostgresContainer(
            image="postgres:16-alpine",
            username="test",
            password="test",
            dbname="conduit_test",
        ) as container:
            yield container
    except Exception as e:
        pytest.skip(f"Docker/Podman not available: {e}")


@pytest.fixture(scope="session")
def postgres_url(postgres_container: Any) -> str:
    """Async connection URL for the PostgreSQL container."""
    sync_url = postgres_container.get_connection_url()
    async_url = sync_url.replace("postgresql://", "postgresql+asyncpg://")
    return async_url.replace("psycopg2", "asyncpg")


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def integration_engine(postgres_url: str) -> AsyncGenerator[Any, None]:
    engine = create_async_engine(postgres_url, echo=False, pool_pre_ping=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(loop_scope="session")
async def integration_session(integration_engine: Any) -> AsyncGenerator[AsyncSession, None]:
    """Session inside a connection-level transaction that is always rolled back.

    ``session.commit()`` only releases a SAVEPOINT, which is re-opened
    immediately, so every test starts from a clean slate.
    """
    async with integration_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        await session.begin_nested()

        @event.listens_for(session.sync_session, "after_transaction_end")
        def restart_savepoint(session_sync, transaction):
            if transaction.nested and not transaction._parent.nested:
                session_sync.begin_nested()

        yield session

        await session.close()
        await trans.rollback()
