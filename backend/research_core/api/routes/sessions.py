"""Session Routes — CRUD, phase navigation, export and import of research sessions.

Invariants:
    - Every call is scoped to the caller's X-Client-Id
    - PUT never moves a stored session along an edge missing from the transition table
    - PUT keeps the stored created_at unless the body sets it explicitly
    - Storage failures surface as the 503 StorageError envelope (global handler)

Design Decisions:
    - PUT is an upsert keyed by the path id; the body id must agree with it
    - Import takes the raw export file as the request body (JSON or bytes), so the
      checksum is verified over exactly what the client sent
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status

from research_core.core.domain_types import ExportFormat
from research_core.core.errors import ErrorContext, ResourceNotFoundError, ResearchCoreError, ErrorCategory
from research_core.core.phase_engine import (
    assert_phase_transition, default_next_phase, is_final, phase_name,
    reachable_phases, suggested_location,
)
from research_core.schemas.session import (
    PhaseTransitionsResponse, Session, SessionImportResponse, SessionListResponse,
)
from research_core.services.session_store import SessionStore
from research_core.api.deps import get_session_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


async def get_session_or_404(session_id: str, store: SessionStore) -> Session:
    """Load a session or raise 404. Shared with the resume routes."""
    session = await store.load(session_id)
    if session is None:
        raise ResourceNotFoundError("Session", session_id, ErrorContext(session_id=session_id))
    return session


@router.get("", response_model=SessionListResponse)
async def list_sessions(store: SessionStore = Depends(get_session_store)):
    return SessionListResponse(session_ids=sorted(await store.list_ids()))


@router.post(
    "/import", response_model=SessionImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def import_session(
    request: Request, store: SessionStore = Depends(get_session_store),
):
    """Import a previously exported session file (JSON body)."""
    result = await store.import_session(await request.body())
    return SessionImportResponse(session=result.session, warnings=result.warnings)


@router.get("/{session_id}", response_model=Session)
async def get_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    return await get_session_or_404(session_id, store)


@router.put("/{session_id}", response_model=Session)
async def save_session(
    session_id: str, body: Session, store: SessionStore = Depends(get_session_store),
):
    """Create or replace a session. Phase changes must follow the transition table."""
    if body.id != session_id:
        raise ResearchCoreError(
            f"Body id '{body.id}' does not match path id '{session_id}'",
            "SESSION_ID_MISMATCH", ErrorCategory.VALIDATION,
            context=ErrorContext(session_id=session_id), http_status=400,
        )
    existing = await store.load(session_id)
    if existing is not None and existing.phase != body.phase:
        assert_phase_transition(existing.phase, body.phase)
        logger.info(
            f"Phase {existing.phase.value} -> {body.phase.value}",
            extra={"session_id": session_id},
        )
    if existing is not None and "created_at" not in body.model_fields_set:
        body = body.model_copy(update={"created_at": existing.created_at})
    return await store.save(body)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    await store.delete(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{session_id}/transitions", response_model=PhaseTransitionsResponse)
async def get_transitions(session_id: str, store: SessionStore = Depends(get_session_store)):
    session = await get_session_or_404(session_id, store)
    return PhaseTransitionsResponse(
        session_id=session.id,
        phase=session.phase,
        phase_name=phase_name(session.phase),
        is_final=is_final(session.phase),
        reachable=reachable_phases(session.phase),
        default_next=default_next_phase(session.phase),
        suggested_location=suggested_location(session.phase),
    )


@router.get("/{session_id}/export")
async def export_session(
    session_id: str,
    format: ExportFormat = Query(ExportFormat.JSON),
    store: SessionStore = Depends(get_session_store),
):
    """Download the session as <id>.json or <id>.md."""
    session = await get_session_or_404(session_id, store)
    blob = await store.export_session(session, format)
    return Response(
        content=blob.content,
        media_type=blob.media_type,
        headers={"Content-Disposition": f'attachment; filename="{blob.filename}"'},
    )
