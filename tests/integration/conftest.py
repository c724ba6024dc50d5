"""Pytest configuration and fixtures for integration tests."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from bakery.infrastructure.database.config import DatabasePool
from bakery.infrastructure.database.isolation import IsolationLevel
from bakery.infrastructure.database.models import Base
from bakery.infrastructure.database.transaction import TransactionController
from bakery.settings import DatabaseSettings, WorkflowSettings


# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def database_settings() -> DatabaseSettings:
    """Settings pointing at the in-memory database."""
    return DatabaseSettings(_env_file=None, url=TEST_DATABASE_URL, acquire_timeout=5)


@pytest.fixture
def workflow_settings() -> WorkflowSettings:
    """Workflow settings usable on SQLite (no READ COMMITTED there)."""
    return WorkflowSettings(
        _env_file=None,
        isolation_level=IsolationLevel.SERIALIZABLE,
        transaction_timeout=5,
        retry_backoff_seconds=0,
    )


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def pool(test_engine, database_settings) -> DatabasePool:
    """Pool manager wrapping the test engine."""
    return DatabasePool(database_settings, engine=test_engine)


@pytest.fixture
def controller(pool) -> TransactionController:
    return TransactionController(pool)

