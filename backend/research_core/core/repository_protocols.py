"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - KeyValueStore is client-scoped by construction: a store instance only ever sees
      one client's keys, so callers never pass a client id around
    - get() returns None for a missing key; raising is reserved for real storage failure
"""

from typing import Any, Callable, Protocol

from research_core.schemas.tribunal import ThreadUpdate


class KeyValueStore(Protocol):
    """Client-scoped persistent key/value store of JSON documents."""
    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def keys(self, prefix: str = "") -> list[str]: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Source of cancellable one-shot timers."""
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


UpdateListener = Callable[[ThreadUpdate], None]


class ThreadProducer(Protocol):
    """Delivers ThreadUpdate batches to one listener between start() and stop()."""
    def start(self, on_update: UpdateListener) -> None: ...
    async def stop(self) -> None: ...


class RealtimeSource(Protocol):
    """Polls one thread for messages past a cursor."""
    async def fetch_updates(self, thread_id: str, cursor: int) -> ThreadUpdate: ...
