"""Route Dependencies — client scope and service construction for FastAPI routes.

Invariants:
    - Client scope comes only from the X-Client-Id header ("anonymous" when absent)
    - Services are built per request around a client-scoped store; they hold no state
      beyond the request
    - The tribunal registry lives on app.state (created by the lifespan)
"""

from fastapi import Depends, Header, Request

from research_core.core.domain_types import ClientId
from research_core.core.errors import ResearchCoreError, ErrorCategory
from research_core.infrastructure.database import DatabaseSessionManager, get_db_manager
from research_core.infrastructure.kv_store import SqlKeyValueStore
from research_core.services.resume_tracker import ResumeTracker
from research_core.services.session_store import SessionStore
from research_core.services.tribunal_registry import TribunalRegistry

DEFAULT_CLIENT_ID = ClientId("anonymous")
MAX_CLIENT_ID_LENGTH = 128


def get_client_id(
    x_client_id: str | None = Header(None, alias="X-Client-Id"),
) -> ClientId:
    if x_client_id is None or not x_client_id.strip():
        return DEFAULT_CLIENT_ID
    client_id = x_client_id.strip()
    if len(client_id) > MAX_CLIENT_ID_LENGTH:
        raise ResearchCoreError(
            f"X-Client-Id exceeds {MAX_CLIENT_ID_LENGTH} characters",
            "INVALID_CLIENT_ID", ErrorCategory.VALIDATION, http_status=400,
        )
    return ClientId(client_id)


def get_kv_store(
    manager: DatabaseSessionManager = Depends(get_db_manager),
    client_id: ClientId = Depends(get_client_id),
) -> SqlKeyValueStore:
    return SqlKeyValueStore(manager, client_id)


def get_session_store(store: SqlKeyValueStore = Depends(get_kv_store)) -> SessionStore:
    return SessionStore(store)


def get_resume_tracker(store: SqlKeyValueStore = Depends(get_kv_store)) -> ResumeTracker:
    return ResumeTracker(store)


def get_tribunal_registry(request: Request) -> TribunalRegistry:
    return request.app.state.tribunal_registry
