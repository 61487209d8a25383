"""Tribunal Registry — the process-wide set of open tribunal synchronizers.

Invariants:
    - At most one synchronizer per thread id; open/close/close_all run one at a time,
      so a replacement never races another open for the same thread
    - close()/close_all() tear synchronizers down before forgetting them: no producer,
      poll task or mock timer outlives its registry entry
    - One RealtimeClient shared by every live synchronizer, created on first use

Design Decisions:
    - In-memory dict: deliberate exception to no-global-state (single-process uvicorn;
      tribunal state is derived from the thread and rebuilt on reopen)
    - Reopening an existing thread with a different mode replaces it
"""

import asyncio
import logging

from research_core.config import Settings
from research_core.core.domain_types import TribunalMode
from research_core.core.errors import ResourceNotFoundError
from research_core.core.repository_protocols import Scheduler
from research_core.infrastructure.realtime_client import RealtimeClient
from research_core.services.tribunal_synchronizer import TribunalSynchronizer, build_synchronizer

logger = logging.getLogger(__name__)


class TribunalRegistry:
    def __init__(
        self,
        settings: Settings,
        scheduler: Scheduler,
        realtime_client: RealtimeClient | None = None,
    ):
        self._settings = settings
        self._scheduler = scheduler
        self._realtime_client = realtime_client
        self._synchronizers: dict[str, TribunalSynchronizer] = {}
        self._lock = asyncio.Lock()

    def __contains__(self, thread_id: str) -> bool:
        return thread_id in self._synchronizers

    def __len__(self) -> int:
        return len(self._synchronizers)

    async def open(self, thread_id: str, mode: TribunalMode) -> TribunalSynchronizer:
        """Return the running synchronizer for thread_id, starting one if needed."""
        async with self._lock:
            existing = self._synchronizers.get(thread_id)
            if existing is not None and existing.mode == mode:
                return existing
            if existing is not None:
                await self._discard(thread_id)

            sync = build_synchronizer(
                thread_id, mode, self._settings,
                scheduler=self._scheduler,
                source=self._client() if mode == TribunalMode.LIVE else None,
            )
            self._synchronizers[thread_id] = sync
            sync.start()
            return sync

    def get(self, thread_id: str) -> TribunalSynchronizer:
        sync = self._synchronizers.get(thread_id)
        if sync is None:
            raise ResourceNotFoundError("Tribunal", thread_id)
        return sync

    async def close(self, thread_id: str) -> None:
        async with self._lock:
            if thread_id not in self._synchronizers:
                raise ResourceNotFoundError("Tribunal", thread_id)
            await self._discard(thread_id)

    async def close_all(self) -> None:
        async with self._lock:
            synchronizers = list(self._synchronizers.values())
            self._synchronizers.clear()
            for sync in synchronizers:
                await sync.close()
            if self._realtime_client is not None:
                await self._realtime_client.aclose()
                self._realtime_client = None
        if synchronizers:
            logger.info(f"Closed {len(synchronizers)} tribunal synchronizer(s)")

    async def _discard(self, thread_id: str) -> None:
        sync = self._synchronizers.pop(thread_id)
        await sync.close()

    def _client(self) -> RealtimeClient:
        if self._realtime_client is None:
            self._realtime_client = RealtimeClient(
                self._settings.realtime_base_url,
                timeout_seconds=self._settings.realtime_timeout_seconds,
            )
        return self._realtime_client
