"""Tribunal Synchronizer — derives live per-agent state from one thread's producer.

Invariants:
    - Exactly one producer per synchronizer; lifetime = start() .. close()
    - After close() no listener is notified and no late delivery mutates state
    - Listeners are notified once per batch that changed something, never for no-ops
    - invoke/cancel are mock-only controls; in live mode they raise TribunalControlError
    - cancel never downgrades a responded agent (terminal state wins)

Design Decisions:
    - Mode is explicit (TribunalMode), never inferred from the thread id
    - State reduction is pure (core/tribunal_state.py); this class owns only wiring,
      the clock, and listener fan-out
    - A listener that raises is logged and skipped: one bad subscriber must not stall
      delivery to the others
"""

import logging
from datetime import datetime
from typing import Callable

from research_core.config import Settings
from research_core.core.agent_config import AGENTS, is_agent_id
from research_core.core.domain_types import AgentId, AgentStatus, TribunalMode
from research_core.core.errors import ErrorContext, TribunalControlError
from research_core.core.repository_protocols import RealtimeSource, Scheduler, ThreadProducer
from research_core.core.tribunal_state import apply_messages, initial_state, reset_agent
from research_core.schemas.session import utc_now
from research_core.schemas.tribunal import AgentStateView, ThreadUpdate, TribunalSnapshot
from research_core.services.tribunal_producers import LiveThreadProducer, MockThreadProducer

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[TribunalSnapshot], None]


class TribunalSynchronizer:
    def __init__(
        self,
        thread_id: str,
        mode: TribunalMode,
        producer: ThreadProducer,
        max_progress: int,
        clock: Callable[[], datetime] = utc_now,
    ):
        if mode == TribunalMode.MOCK and not isinstance(producer, MockThreadProducer):
            raise TypeError("mock mode requires a MockThreadProducer")
        self.thread_id = thread_id
        self.mode = mode
        self.state = initial_state(max_progress)
        self._producer = producer
        self._clock = clock
        self._listeners: list[SnapshotListener] = []
        self._started = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def controls_enabled(self) -> bool:
        return self.mode == TribunalMode.MOCK and not self._closed

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._producer.start(self._on_update)
        logger.info(
            "Tribunal synchronizer started",
            extra={"thread_id": self.thread_id, "mode": self.mode.value},
        )

    async def close(self) -> None:
        """Stop the producer and drop listeners. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        await self._producer.stop()
        logger.info("Tribunal synchronizer closed", extra={"thread_id": self.thread_id})

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener; returns its unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> TribunalSnapshot:
        return TribunalSnapshot(
            thread_id=self.thread_id,
            mode=self.mode,
            controls_enabled=self.controls_enabled,
            agents=[
                AgentStateView(
                    agent_id=agent.agent_id,
                    display_name=AGENTS[agent.agent_id].display_name,
                    status=agent.status,
                    progress=agent.progress,
                    max_progress=self.state.max_progress,
                    response=agent.response,
                )
                for agent in self.state.agents.values()
            ],
        )

    def invoke(self, agent_id: str) -> bool:
        """Start a simulated run. False if the agent has already responded."""
        producer = self._require_controls(agent_id)
        if self.state.agents[AgentId(agent_id)].status == AgentStatus.RESPONDED:
            return False
        producer.invoke(AgentId(agent_id))
        return True

    def cancel(self, agent_id: str) -> bool:
        """Clear the agent's pending timers and reset it to idle unless it responded."""
        producer = self._require_controls(agent_id)
        producer.cancel(AgentId(agent_id))
        changed = reset_agent(self.state, AgentId(agent_id))
        if changed:
            self._notify()
        return changed

    def _require_controls(self, agent_id: str) -> MockThreadProducer:
        ctx = ErrorContext(thread_id=self.thread_id, agent_id=agent_id)
        if not self.controls_enabled:
            raise TribunalControlError(
                f"Agent controls are unavailable for {self.mode.value} thread", ctx,
            )
        if not is_agent_id(agent_id):
            raise TribunalControlError(f"Unknown tribunal agent '{agent_id}'", ctx)
        return self._producer

    def _on_update(self, update: ThreadUpdate) -> None:
        if self._closed:
            return
        changed = apply_messages(self.state, update.new_messages, self._clock())
        if changed:
            logger.debug(
                f"Tribunal update changed {len(changed)} agent(s)",
                extra={"thread_id": self.thread_id},
            )
            self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Tribunal listener failed", extra={"thread_id": self.thread_id})


def build_synchronizer(
    thread_id: str,
    mode: TribunalMode,
    settings: Settings,
    scheduler: Scheduler | None = None,
    source: RealtimeSource | None = None,
) -> TribunalSynchronizer:
    """Wire a synchronizer with the producer matching its mode."""
    steps = settings.tribunal_progress_steps
    if mode == TribunalMode.MOCK:
        if scheduler is None:
            raise ValueError("mock mode requires a scheduler")
        producer: ThreadProducer = MockThreadProducer(
            scheduler,
            thread_id,
            progress_steps=steps,
            step_delay_seconds=settings.tribunal_step_delay_ms / 1000,
            completion_delay_seconds=settings.tribunal_completion_delay_ms / 1000,
        )
    else:
        if source is None:
            raise ValueError("live mode requires a realtime source")
        producer = LiveThreadProducer(
            source, thread_id, settings.realtime_poll_interval_ms / 1000,
        )
    return TribunalSynchronizer(thread_id, mode, producer, max_progress=steps)
