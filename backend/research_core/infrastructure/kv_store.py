"""SQL Key/Value Store — client-scoped JSON documents on top of DatabaseSessionManager.

Invariants:
    - Every query is filtered by the instance's client_id (scope cannot leak)
    - get() returns None for a missing key; only real DB failures raise (StorageError)
    - set() is an upsert; delete() of a missing key is a no-op
    - One short-lived DB session per call: no session outlives an operation

Design Decisions:
    - Implements core KeyValueStore protocol structurally (no inheritance)
    - session.get by composite PK over SELECT: identity-map friendly, single round trip
"""

import logging
from typing import Any

from sqlalchemy import delete, select

from research_core.infrastructure.database import DatabaseSessionManager
from research_core.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)


class SqlKeyValueStore:
    """KeyValueStore backed by the kv_entries table."""

    def __init__(self, manager: DatabaseSessionManager, client_id: str):
        self._manager = manager
        self.client_id = client_id

    async def get(self, key: str) -> Any | None:
        async with self._manager.session() as db:
            entry = await db.get(KeyValueEntry, (self.client_id, key))
            return entry.value if entry is not None else None

    async def set(self, key: str, value: Any) -> None:
        async with self._manager.session() as db:
            entry = await db.get(KeyValueEntry, (self.client_id, key))
            if entry is None:
                db.add(KeyValueEntry(client_id=self.client_id, key=key, value=value))
            else:
                entry.value = value
            await db.commit()
        logger.debug(f"Stored {key}", extra={"client_id": self.client_id})

    async def delete(self, key: str) -> None:
        async with self._manager.session() as db:
            await db.execute(
                delete(KeyValueEntry).where(
                    KeyValueEntry.client_id == self.client_id,
                    KeyValueEntry.key == key,
                ),
            )
            await db.commit()

    async def keys(self, prefix: str = "") -> list[str]:
        async with self._manager.session() as db:
            result = await db.execute(
                select(KeyValueEntry.key)
                .where(
                    KeyValueEntry.client_id == self.client_id,
                    KeyValueEntry.key.startswith(prefix, autoescape=True),
                )
                .order_by(KeyValueEntry.key),
            )
            return list(result.scalars().all())
