"""Root conftest — shared test configuration."""

import os

# Ensure tests never touch a real database or realtime endpoint
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REALTIME_BASE_URL", "http://realtime.test")
