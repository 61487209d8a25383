"""API test fixtures — FastAPI app over ASGITransport with a fresh SQLite store.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db_manager dependency overridden to the test manager
    - The tribunal registry runs on a ManualScheduler: mock timers fire only on advance()

Design Decisions:
    - ASGITransport does not run the lifespan, so the fixture installs what the
      lifespan would (registry on app.state) and tears it down afterwards
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from research_core.config import get_settings
from research_core.db.base import Base
from research_core.db.session import create_schema
from research_core.infrastructure.database import DatabaseSessionManager, get_db_manager
from research_core.main import app
from research_core.services.tribunal_registry import TribunalRegistry
from tests.services.fakes import ManualScheduler


@pytest.fixture
async def test_manager():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    await create_schema(engine)
    yield DatabaseSessionManager.from_engine(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
async def registry(scheduler):
    registry = TribunalRegistry(get_settings(), scheduler)
    yield registry
    await registry.close_all()


@pytest.fixture
async def client(test_manager, registry):
    """FastAPI test client scoped to client id "client-a"."""
    app.dependency_overrides[get_db_manager] = lambda: test_manager
    app.state.tribunal_registry = registry

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
        headers={"X-Client-Id": "client-a"},
    ) as c:
        yield c

    app.dependency_overrides.clear()
