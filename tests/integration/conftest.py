"""Integration test fixtures with a real SQLite database."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from workday_ledger.database import create_schema, get_engine, make_session_factory
from workday_ledger.stores import SqlEmployeeStore, SqlPaymentRecordStore, SqlWorkRecordStore


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed SQLite database unique to each test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"


@pytest_asyncio.fixture
async def db_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Engine with the document tables created."""
    engine = get_engine(database_url)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(db_engine)


@pytest.fixture
def sql_work_store(session_factory) -> SqlWorkRecordStore:
    return SqlWorkRecordStore(session_factory)


@pytest.fixture
def sql_payment_store(session_factory) -> SqlPaymentRecordStore:
    return SqlPaymentRecordStore(session_factory)


@pytest.fixture
def sql_employee_store(session_factory) -> SqlEmployeeStore:
    return SqlEmployeeStore(session_factory)
