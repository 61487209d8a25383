"""Schema Bootstrap — creates tables directly for local SQLite runs and tests.

Invariants:
    - Idempotent: create_all skips existing tables
    - Production databases are migrated with alembic, never bootstrapped here

Design Decisions:
    - Separate from infrastructure/database.py: runs before db_manager exists
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from research_core.db.base import Base
import research_core.models  # noqa: F401


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables on the given engine."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
