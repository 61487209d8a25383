"""Service test fixtures — fakes for the core Protocols plus a SQLite engine.

Invariants:
    - Every test gets fresh fakes; nothing is shared between tests

Design Decisions:
    - SQLite in-memory for SqlKeyValueStore: fast, no external dependency
"""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from research_core.db.base import Base
from research_core.db.session import create_schema
from research_core.infrastructure.database import DatabaseSessionManager
from tests.services.fakes import FixedClock, InMemoryKeyValueStore, ManualScheduler


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
async def db_manager():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    await create_schema(engine)
    manager = DatabaseSessionManager.from_engine(engine)
    yield manager
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
