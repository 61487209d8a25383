"""Key/Value Entry ORM — one JSON document per (client_id, key).

Invariants:
    - (client_id, key) is the composite primary key: a client never sees another's keys
    - value is non-nullable JSON; absence is modelled by the row not existing
    - updated_at is refreshed on every write

Design Decisions:
    - Generic document table over one table per aggregate: sessions and resume entries
      share the same client-scoped store (ADR: mirrors the browser storage it replaces)
    - Key prefixes ("brenner-session:", "brenner-session-resume:") namespace aggregates
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from research_core.db.base import Base


class KeyValueEntry(Base):
    """Client-scoped JSON document."""
    __tablename__ = "kv_entries"

    client_id: Mapped[str] = mapped_column(String(200), primary_key=True)
    key: Mapped[str] = mapped_column(String(500), primary_key=True)
    value: Mapped[dict | list] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
