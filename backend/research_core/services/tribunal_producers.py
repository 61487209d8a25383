"""Tribunal Producers — two interchangeable sources of ThreadUpdate batches.

Invariants:
    - Both producers honour ThreadProducer: start(on_update) then stop(); nothing is
      delivered after stop() returns, not even a batch already in flight
    - LiveThreadProducer: cursor starts at 0 (first batch includes history) and never
      moves backwards; fixed interval; a failed poll is logged and the next tick proceeds
    - MockThreadProducer: every scheduled timer is recorded per agent; cancel(agent)
      clears exactly that agent's timers, stop() clears all of them
    - MockThreadProducer.invoke() replaces any in-flight run for the agent, so a
      cancel-then-invoke (or double invoke) never yields two completion timers

Design Decisions:
    - Mock timers go through the Scheduler protocol: production uses loop.call_later,
      tests advance a manual clock
    - A fired mock timer re-checks that its token is still registered before delivering:
      cancellation stays exact even if a scheduler fires a handle it was asked to cancel
    - Mock messages use the real tag grammar, so the synchronizer cannot tell them apart
"""

import asyncio
import itertools
import logging
from contextlib import suppress
from datetime import datetime
from typing import Callable

from research_core.core.agent_config import AGENTS
from research_core.core.domain_types import AgentId
from research_core.core.errors import RealtimeTransportError
from research_core.core.repository_protocols import (
    RealtimeSource, Scheduler, TimerHandle, UpdateListener,
)
from research_core.schemas.session import utc_now
from research_core.schemas.tribunal import ThreadMessage, ThreadUpdate

logger = logging.getLogger(__name__)


# --- Live ---------------------------------------------------------------------

class LiveThreadProducer:
    """Polls the realtime endpoint with an advancing cursor."""

    def __init__(self, source: RealtimeSource, thread_id: str, interval_seconds: float):
        self.thread_id = thread_id
        self.interval_seconds = interval_seconds
        self.cursor = 0
        self._source = source
        self._listener: UpdateListener | None = None
        self._task: asyncio.Task | None = None

    def start(self, on_update: UpdateListener) -> None:
        if self._task is not None:
            raise RuntimeError("producer already started")
        self._listener = on_update
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        self._listener = None
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def poll_once(self) -> ThreadUpdate | None:
        """Fetch one batch and deliver it. None if stopped while in flight."""
        update = await self._source.fetch_updates(self.thread_id, self.cursor)
        listener = self._listener
        if listener is None:
            return None
        self.cursor = _advance_cursor(self.cursor, update)
        listener(update)
        return update

    async def _run(self) -> None:
        while self._listener is not None:
            try:
                await self.poll_once()
            except RealtimeTransportError as e:
                logger.warning(
                    e.message, extra={"thread_id": self.thread_id, "cursor": self.cursor},
                )
            except Exception as e:
                logger.error(
                    "Unexpected error polling thread: %s", e,
                    extra={"thread_id": self.thread_id, "cursor": self.cursor},
                    exc_info=True,
                )
            await asyncio.sleep(self.interval_seconds)


def _advance_cursor(cursor: int, update: ThreadUpdate) -> int:
    ids = [m.id for m in update.new_messages if m.id is not None]
    if update.latest_message_id is not None:
        ids.append(update.latest_message_id)
    return max([cursor, *ids])


# --- Mock ---------------------------------------------------------------------

_MOCK_TAKES: dict[str, tuple[str, str, str]] = {
    "devils_advocate": (
        "The effect could be produced by a confound in sample selection.",
        "The causal arrow may point the other way.",
        "Add a condition that removes the proposed mechanism entirely.",
    ),
    "experiment_designer": (
        "A two-arm design with a potency control separates the hypotheses.",
        "Current predictions are not yet discriminative.",
        "Pre-register the exclusion criterion before collecting data.",
    ),
    "brenner_channeler": (
        "Choose the system where the answer is cheapest to read out.",
        "Too much theory, not enough experiment.",
        "Look for the single observation that would kill the idea.",
    ),
}
_DEFAULT_TAKE = (
    "The hypothesis is testable as stated.",
    "Scope is broader than the evidence supports.",
    "Narrow the claim to the level where it can fail.",
)


class MockThreadProducer:
    """Synthetic, timer-driven thread used when no backend thread exists."""

    def __init__(
        self,
        scheduler: Scheduler,
        thread_id: str,
        progress_steps: int = 3,
        step_delay_seconds: float = 1.2,
        completion_delay_seconds: float = 5.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        if progress_steps < 1:
            raise ValueError("progress_steps must be >= 1")
        if completion_delay_seconds <= progress_steps * step_delay_seconds:
            raise ValueError("completion must be scheduled after the last progress step")
        self.thread_id = thread_id
        self.progress_steps = progress_steps
        self.step_delay_seconds = step_delay_seconds
        self.completion_delay_seconds = completion_delay_seconds
        self._scheduler = scheduler
        self._clock = clock
        self._listener: UpdateListener | None = None
        self._timers: dict[AgentId, dict[object, TimerHandle]] = {}
        self._message_ids = itertools.count(1)

    def start(self, on_update: UpdateListener) -> None:
        self._listener = on_update

    async def stop(self) -> None:
        self._listener = None
        for agent_id in list(self._timers):
            self.cancel(agent_id)

    def invoke(self, agent_id: AgentId) -> None:
        """Schedule progress pings plus one completion for agent_id."""
        self.cancel(agent_id)
        for step in range(1, self.progress_steps + 1):
            self._schedule(
                agent_id, step * self.step_delay_seconds,
                lambda step=step: self._ping_message(agent_id, step),
            )
        self._schedule(
            agent_id, self.completion_delay_seconds,
            lambda: self._completion_message(agent_id),
        )
        logger.info("Mock agent invoked", extra={"thread_id": self.thread_id, "agent_id": agent_id})

    def cancel(self, agent_id: AgentId) -> int:
        """Clear every pending timer for agent_id. Returns how many were cleared."""
        timers = self._timers.pop(agent_id, {})
        for handle in timers.values():
            handle.cancel()
        return len(timers)

    def pending_timers(self, agent_id: AgentId | None = None) -> int:
        if agent_id is not None:
            return len(self._timers.get(agent_id, {}))
        return sum(len(t) for t in self._timers.values())

    def _schedule(
        self, agent_id: AgentId, delay: float, build: Callable[[], ThreadMessage],
    ) -> None:
        token = object()
        handle = self._scheduler.call_later(
            delay, lambda: self._fire(agent_id, token, build),
        )
        self._timers.setdefault(agent_id, {})[token] = handle

    def _fire(
        self, agent_id: AgentId, token: object, build: Callable[[], ThreadMessage],
    ) -> None:
        timers = self._timers.get(agent_id)
        if timers is None or timers.pop(token, None) is None:
            return
        if not timers:
            del self._timers[agent_id]
        listener = self._listener
        if listener is None:
            return
        listener(ThreadUpdate(new_messages=[build()]))

    def _ping_message(self, agent_id: AgentId, step: int) -> ThreadMessage:
        return ThreadMessage(
            id=next(self._message_ids),
            subject=f"TRIBUNAL[{agent_id}]: analyzing ({step}/{self.progress_steps})",
            from_=_display_name(agent_id),
            created_ts=self._clock().isoformat(),
        )

    def _completion_message(self, agent_id: AgentId) -> ThreadMessage:
        summary, disagreement, suggestion = _MOCK_TAKES.get(agent_id, _DEFAULT_TAKE)
        body = "\n".join([
            f"# {_display_name(agent_id)} assessment",
            "",
            summary,
            "",
            "Confidence: 70%",
            f"Disagreement: {disagreement}",
            f"Suggestion: {suggestion}",
        ])
        return ThreadMessage(
            id=next(self._message_ids),
            subject=f"DELTA[{agent_id}]: {_display_name(agent_id)} response",
            from_=_display_name(agent_id),
            created_ts=self._clock().isoformat(),
            body_md=body,
        )


def _display_name(agent_id: AgentId) -> str:
    agent = AGENTS.get(agent_id)
    return agent.display_name if agent else agent_id
