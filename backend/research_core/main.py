"""Research Core API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ResearchCoreError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup, tribunal synchronizers torn down on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - SQLite databases get their schema created at startup; Postgres is migrated by
      alembic ahead of deploy
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from research_core import __version__
from research_core.config import get_settings
from research_core.db.session import create_schema
from research_core.infrastructure.database import init_db
from research_core.infrastructure.observability import setup_logging
from research_core.infrastructure.scheduler import AsyncioScheduler
from research_core.services.tribunal_registry import TribunalRegistry
from research_core.api.error_handlers import register_error_handlers
from research_core.api.routes import evidence, health, resume, sessions, tribunal

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_url.startswith("sqlite"):
        await create_schema(manager.engine)
    app.state.tribunal_registry = TribunalRegistry(settings, AsyncioScheduler())
    logger.info("Research Core API started")
    yield
    logger.info("Research Core API shutting down")
    await app.state.tribunal_registry.close_all()
    await manager.dispose()


app = FastAPI(
    title="Research Core API", version=__version__, lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(sessions.router)
app.include_router(resume.router)
app.include_router(evidence.router)
app.include_router(tribunal.router)

register_error_handlers(app)
