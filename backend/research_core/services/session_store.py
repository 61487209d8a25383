"""Session Store — async CRUD, export and import of Session aggregates.

Invariants:
    - load() returns None for "not found"; StorageError only for storage failure or a
      corrupt stored payload
    - save() upserts and stamps updated_at; the caller's object is never mutated
    - delete() is idempotent
    - Operations are not cancellable mid-flight; concurrent writers: last write wins

Design Decisions:
    - Wraps any KeyValueStore (protocol): SQL in production, dict fake in tests
    - Clock injectable: deterministic updated_at / exported_at in tests
    - Export/import formatting lives in core/session_export.py (pure); this class only
      adds the clock and logging
"""

import logging
from datetime import datetime
from typing import Callable

from pydantic import ValidationError

from research_core.core.domain_types import ExportFormat
from research_core.core.errors import ErrorContext, StorageError
from research_core.core.repository_protocols import KeyValueStore
from research_core.core.session_export import (
    ExportBlob, SessionImportResult, parse_session_export, render_export,
)
from research_core.schemas.session import Session, utc_now

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "brenner-session:"


def session_key(session_id: str) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


class SessionStore:
    """Persistence gateway for the Session aggregate."""

    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._clock = clock

    async def load(self, session_id: str) -> Session | None:
        raw = await self._store.get(session_key(session_id))
        if raw is None:
            return None
        try:
            return Session.model_validate(raw)
        except ValidationError as e:
            logger.error(
                f"Corrupt session payload: {e.error_count()} error(s)",
                extra={"session_id": session_id},
            )
            raise StorageError(
                "stored session is corrupt", "load",
                ErrorContext(session_id=session_id),
            )

    async def save(self, session: Session) -> Session:
        stamped = session.model_copy(update={"updated_at": self._clock()})
        await self._store.set(session_key(stamped.id), stamped.model_dump(mode="json"))
        logger.info("Session saved", extra={"session_id": stamped.id})
        return stamped

    async def delete(self, session_id: str) -> None:
        await self._store.delete(session_key(session_id))
        logger.info("Session deleted", extra={"session_id": session_id})

    async def list_ids(self) -> list[str]:
        keys = await self._store.keys(SESSION_KEY_PREFIX)
        return [k[len(SESSION_KEY_PREFIX):] for k in keys]

    async def export_session(self, session: Session, fmt: ExportFormat) -> ExportBlob:
        return render_export(session, fmt, self._clock())

    async def import_session(self, content: bytes | str) -> SessionImportResult:
        """Parse an exported file and persist the session it contains."""
        result = parse_session_export(content)
        saved = await self.save(result.session)
        if result.warnings:
            logger.warning(
                f"Session imported with {len(result.warnings)} warning(s)",
                extra={"session_id": saved.id},
            )
        return SessionImportResult(session=saved, warnings=result.warnings)
