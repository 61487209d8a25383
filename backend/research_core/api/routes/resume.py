"""Resume Routes — record and read the last location visited in a session.

Invariants:
    - Recording does not require the session to exist (the ledger is advisory)
    - The suggestion requires the session: its phase is the fallback location
"""

import logging

from fastapi import APIRouter, Depends, Query

from research_core.core.errors import ErrorContext, ResourceNotFoundError
from research_core.schemas.session import ResumeEntryRequest, ResumeSuggestion, SessionResumeEntry
from research_core.services.resume_tracker import ResumeTracker
from research_core.services.session_store import SessionStore
from research_core.api.deps import get_resume_tracker, get_session_store
from research_core.api.routes.sessions import get_session_or_404

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sessions", tags=["resume"])


@router.get("/{session_id}/resume", response_model=SessionResumeEntry)
async def get_resume_entry(
    session_id: str, tracker: ResumeTracker = Depends(get_resume_tracker),
):
    entry = await tracker.get_session_resume_entry(session_id)
    if entry is None:
        raise ResourceNotFoundError(
            "Resume entry", session_id, ErrorContext(session_id=session_id),
        )
    return entry


@router.post("/{session_id}/resume", response_model=SessionResumeEntry)
async def record_resume_entry(
    session_id: str,
    body: ResumeEntryRequest,
    if_missing: bool = Query(False),
    tracker: ResumeTracker = Depends(get_resume_tracker),
):
    """Record a visit; with if_missing=true an existing entry is left untouched."""
    return await tracker.record_session_resume_entry(
        session_id, body.location, if_missing=if_missing,
    )


@router.get("/{session_id}/resume/suggestion", response_model=ResumeSuggestion)
async def get_resume_suggestion(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    tracker: ResumeTracker = Depends(get_resume_tracker),
):
    session = await get_session_or_404(session_id, store)
    return await tracker.suggest(session.id, session.phase)
