"""Asyncio Scheduler — one-shot timers on the running event loop.

Invariants:
    - call_later must be invoked from inside the running loop
    - The returned handle's cancel() is idempotent and safe after the timer fired

Design Decisions:
    - Implements core Scheduler protocol; the mock tribunal producer only ever sees the
      protocol, so tests drive it with a manual clock instead of real sleeps
"""

import asyncio
from typing import Callable


class AsyncioScheduler:
    """Scheduler backed by loop.call_later."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay), callback)
