"""Database Infrastructure — SQLAlchemy Base and schema bootstrap.

Invariants:
    - Single async engine per process (initialized via init_db)
    - All sessions are async (AsyncSession)

Design Decisions:
    - aiosqlite locally, asyncpg for PostgreSQL (ADR: native async, no thread pool overhead)
"""
