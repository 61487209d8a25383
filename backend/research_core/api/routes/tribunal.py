"""Tribunal Routes — open, observe, drive and tear down tribunal synchronizers.

Invariants:
    - One synchronizer per thread id, owned by the app's TribunalRegistry
    - DELETE tears the synchronizer down: no poll task or mock timer survives it
    - invoke/cancel on a live thread answer 409 (TribunalControlError)
    - The SSE stream always starts with the current snapshot and ends with a done
      event once the synchronizer is closed

Design Decisions:
    - SSE over websockets: one-way state fan-out, proxies and curl handle it
    - Listener → asyncio.Queue bridge: synchronizer callbacks are sync, the stream is async
    - Keepalive comments double as the close check for an idle stream
"""

import asyncio
import json
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import StreamingResponse

from research_core.core.domain_types import TribunalMode
from research_core.schemas.tribunal import TribunalControlResponse, TribunalSnapshot
from research_core.services.tribunal_registry import TribunalRegistry
from research_core.services.tribunal_synchronizer import TribunalSynchronizer
from research_core.api.deps import get_tribunal_registry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/tribunal", tags=["tribunal"])

# SSE headers prevent proxy/browser buffering of streamed events.
_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}
KEEPALIVE_SECONDS = 15.0


@router.post(
    "/{thread_id}", response_model=TribunalSnapshot,
    status_code=status.HTTP_201_CREATED,
)
async def open_tribunal(
    thread_id: str,
    mode: TribunalMode = Query(TribunalMode.LIVE),
    registry: TribunalRegistry = Depends(get_tribunal_registry),
):
    """Start (or return) the synchronizer for thread_id in the given mode."""
    sync = await registry.open(thread_id, mode)
    return sync.snapshot()


@router.get("/{thread_id}", response_model=TribunalSnapshot)
async def get_tribunal(
    thread_id: str, registry: TribunalRegistry = Depends(get_tribunal_registry),
):
    return registry.get(thread_id).snapshot()


@router.delete("/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_tribunal(
    thread_id: str, registry: TribunalRegistry = Depends(get_tribunal_registry),
):
    await registry.close(thread_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{thread_id}/agents/{agent_id}/invoke", response_model=TribunalControlResponse)
async def invoke_agent(
    thread_id: str, agent_id: str,
    registry: TribunalRegistry = Depends(get_tribunal_registry),
):
    sync = registry.get(thread_id)
    accepted = sync.invoke(agent_id)
    return TribunalControlResponse(agent_id=agent_id, accepted=accepted, snapshot=sync.snapshot())


@router.post("/{thread_id}/agents/{agent_id}/cancel", response_model=TribunalControlResponse)
async def cancel_agent(
    thread_id: str, agent_id: str,
    registry: TribunalRegistry = Depends(get_tribunal_registry),
):
    sync = registry.get(thread_id)
    accepted = sync.cancel(agent_id)
    return TribunalControlResponse(agent_id=agent_id, accepted=accepted, snapshot=sync.snapshot())


@router.get("/{thread_id}/stream")
async def stream_tribunal(
    thread_id: str, registry: TribunalRegistry = Depends(get_tribunal_registry),
):
    """SSE stream of tribunal snapshots until the synchronizer is closed."""
    sync = registry.get(thread_id)
    return StreamingResponse(
        tribunal_events(sync),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


async def tribunal_events(
    sync: TribunalSynchronizer, keepalive_seconds: float | None = None,
) -> AsyncIterator[str]:
    """Yield SSE lines: current snapshot, then one per state change, then done."""
    keepalive = KEEPALIVE_SECONDS if keepalive_seconds is None else keepalive_seconds
    queue: asyncio.Queue[TribunalSnapshot] = asyncio.Queue()
    unsubscribe = sync.subscribe(queue.put_nowait)
    try:
        yield _sse_line(_state_event(sync.snapshot()))
        while not sync.closed:
            try:
                snapshot = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                if not sync.closed:
                    yield ": keepalive\n\n"
                continue
            yield _sse_line(_state_event(snapshot))
        yield _sse_line({"type": "done", "data": {"thread_id": sync.thread_id}})
    except asyncio.CancelledError:
        logger.info("Client disconnected from tribunal stream", extra={"thread_id": sync.thread_id})
        raise
    finally:
        unsubscribe()


def _state_event(snapshot: TribunalSnapshot) -> dict:
    return {"type": "tribunal_state", "data": snapshot.model_dump(mode="json")}


def _sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"
