"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All deployment-specific values come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - realtime_poll_interval_ms is clamped to 500..10000

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for every setting: SQLite works out-of-the-box for local runs
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database (client-scoped key/value store)
    database_url: str = "sqlite+aiosqlite:///./research_core.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Realtime thread transport (live tribunal producer)
    realtime_base_url: str = "http://localhost:3000"
    realtime_poll_interval_ms: int = 2000
    realtime_timeout_seconds: float = 10.0

    @field_validator("realtime_poll_interval_ms")
    @classmethod
    def clamp_poll_interval(cls, v: int) -> int:
        return min(10_000, max(500, v))

    # Mock tribunal simulation
    tribunal_progress_steps: int = 3
    tribunal_step_delay_ms: int = 1200
    tribunal_completion_delay_ms: int = 5000

    # Evidence packs
    artifacts_root: str = "."

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
