"""Resume Tracker — per-session "last visited location" ledger.

Invariants:
    - One entry per session id; a normal record overwrites it
    - if_missing=True never overwrites an existing entry (first-touch bookkeeping)
    - A corrupt ledger entry reads as missing: resume hints are advisory
"""

import logging
from datetime import datetime
from typing import Callable

from pydantic import ValidationError

from research_core.core.domain_types import Phase, UILocation
from research_core.core.repository_protocols import KeyValueStore
from research_core.core.resume_location import build_session_path, choose_resume_location
from research_core.schemas.session import ResumeSuggestion, SessionResumeEntry, utc_now

logger = logging.getLogger(__name__)

RESUME_KEY_PREFIX = "brenner-session-resume:"


class ResumeTracker:
    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._clock = clock

    async def record_session_resume_entry(
        self, session_id: str, location: UILocation, if_missing: bool = False,
    ) -> SessionResumeEntry:
        """Record a visit. Returns the entry now on file."""
        if if_missing:
            existing = await self.get_session_resume_entry(session_id)
            if existing is not None:
                return existing
        entry = SessionResumeEntry(location=location, visited_at=self._clock())
        await self._store.set(_key(session_id), entry.model_dump(mode="json"))
        return entry

    async def get_session_resume_entry(self, session_id: str) -> SessionResumeEntry | None:
        raw = await self._store.get(_key(session_id))
        if raw is None:
            return None
        try:
            return SessionResumeEntry.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring corrupt resume entry", extra={"session_id": session_id})
            return None

    def build_session_path(self, session_id: str, location: UILocation) -> str:
        return build_session_path(session_id, location)

    async def suggest(self, session_id: str, phase: Phase) -> ResumeSuggestion:
        """Resume target: last visited page unless generic, else the phase's page."""
        entry = await self.get_session_resume_entry(session_id)
        location = choose_resume_location(entry, phase)
        return ResumeSuggestion(
            session_id=session_id,
            location=location,
            path=build_session_path(session_id, location),
            last_visited=entry,
        )


def _key(session_id: str) -> str:
    return f"{RESUME_KEY_PREFIX}{session_id}"
