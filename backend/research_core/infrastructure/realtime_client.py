"""Realtime Client — polls the thread transport for messages past a cursor.

Invariants:
    - One GET per fetch_updates(): ?threadId=<id>&cursor=<n>, JSON body
    - Transport/HTTP/JSON failures are mapped to RealtimeTransportError (no retries here)
    - Malformed individual messages are dropped; one bad message never sinks a batch

Design Decisions:
    - httpx.AsyncClient owned by the wrapper: connection reuse across poll ticks
    - transport injectable: tests swap in httpx.MockTransport instead of patching
    - Retry policy belongs to the transport collaborator, not this client
"""

import logging

import httpx
from pydantic import ValidationError

from research_core.core.errors import ErrorContext, RealtimeTransportError
from research_core.schemas.tribunal import ThreadMessage, ThreadUpdate

logger = logging.getLogger(__name__)


class RealtimeClient:
    """Thin async wrapper around the realtime thread endpoint."""

    ENDPOINT = "/api/realtime"

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds, transport=transport,
        )

    async def fetch_updates(self, thread_id: str, cursor: int) -> ThreadUpdate:
        ctx = ErrorContext(thread_id=thread_id)
        try:
            response = await self._client.get(
                self.ENDPOINT, params={"threadId": thread_id, "cursor": cursor},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise RealtimeTransportError(f"HTTP {e.response.status_code}", ctx)
        except httpx.HTTPError as e:
            raise RealtimeTransportError(type(e).__name__, ctx)
        except ValueError:
            raise RealtimeTransportError("response is not JSON", ctx)
        return parse_thread_update(payload, thread_id)

    async def aclose(self) -> None:
        await self._client.aclose()


def parse_thread_update(payload: object, thread_id: str = "") -> ThreadUpdate:
    """Lenient envelope parsing: keep well-formed messages, drop the rest."""
    if not isinstance(payload, dict):
        return ThreadUpdate()
    raw_messages = payload.get("newMessages")
    messages: list[ThreadMessage] = []
    for raw in raw_messages if isinstance(raw_messages, list) else []:
        try:
            messages.append(ThreadMessage.model_validate(raw))
        except ValidationError:
            logger.debug("Dropped malformed thread message", extra={"thread_id": thread_id})
    latest = payload.get("latestMessageId")
    if isinstance(latest, bool) or not isinstance(latest, int):
        latest = None
    return ThreadUpdate(new_messages=messages, latest_message_id=latest)
