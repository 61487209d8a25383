"""Tribunal State — per-agent status derivation from typed thread signals.

Invariants:
    - Status only moves forward: idle -> thinking -> responded; RESPONDED is terminal
    - PING: idle -> thinking, progress += 1 capped at max_progress - 1
    - COMPLETION: -> responded, progress = max_progress, exactly one AgentResponse
    - Any signal for a responded agent is ignored (idempotent under redelivery)
    - reset_agent never touches a responded agent

Design Decisions:
    - Mutable dataclass + pure reducer functions: no IO, no clock reads (now is passed in)
    - Reducers return whether anything changed so the shell can skip no-op notifications
"""

import re
from dataclasses import dataclass, field
from datetime import datetime

from research_core.core.agent_config import AGENTS
from research_core.core.domain_types import AgentId, AgentStatus, SignalKind
from research_core.core.tribunal_tags import TribunalSignal, classify_message, strip_tag_prefix
from research_core.schemas.tribunal import AgentResponse, ThreadMessage

_CONFIDENCE_LINE = re.compile(r"^\s*confidence\s*:\s*([0-9]+(?:\.[0-9]+)?)\s*(%?)", re.IGNORECASE)
_DISAGREEMENT_LINE = re.compile(r"^\s*disagree(?:ment)?s?\s*:\s*(.+)$", re.IGNORECASE)
_SUGGESTION_LINE = re.compile(r"^\s*suggest(?:ion)?s?\s*:\s*(.+)$", re.IGNORECASE)


@dataclass
class AgentState:
    agent_id: AgentId
    status: AgentStatus = AgentStatus.IDLE
    progress: int = 0
    response: AgentResponse | None = None


@dataclass
class TribunalState:
    max_progress: int
    agents: dict[AgentId, AgentState] = field(default_factory=dict)


def initial_state(max_progress: int) -> TribunalState:
    if max_progress < 1:
        raise ValueError("max_progress must be >= 1")
    return TribunalState(
        max_progress=max_progress,
        agents={agent_id: AgentState(agent_id) for agent_id in AGENTS},
    )


def apply_signal(state: TribunalState, signal: TribunalSignal, now: datetime) -> bool:
    """Apply one signal. Returns True if the agent's state changed."""
    agent = state.agents.get(signal.agent_id)
    if agent is None or agent.status == AgentStatus.RESPONDED:
        return False

    if signal.kind == SignalKind.COMPLETION:
        agent.status = AgentStatus.RESPONDED
        agent.progress = state.max_progress
        agent.response = build_response(signal, now)
        return True

    before = (agent.status, agent.progress)
    agent.status = AgentStatus.THINKING
    agent.progress = min(agent.progress + 1, state.max_progress - 1)
    return (agent.status, agent.progress) != before


def apply_messages(
    state: TribunalState, messages: list[ThreadMessage], now: datetime,
) -> list[AgentId]:
    """Apply a delivered batch in order. Returns ids of agents that changed."""
    changed: list[AgentId] = []
    for message in messages:
        signal = classify_message(message)
        if signal is None:
            continue
        if apply_signal(state, signal, now) and signal.agent_id not in changed:
            changed.append(signal.agent_id)
    return changed


def reset_agent(state: TribunalState, agent_id: AgentId) -> bool:
    agent = state.agents.get(agent_id)
    if agent is None or agent.status == AgentStatus.RESPONDED:
        return False
    if agent.status == AgentStatus.IDLE and agent.progress == 0:
        return False
    agent.status = AgentStatus.IDLE
    agent.progress = 0
    return True


# --- Response materialization -------------------------------------------------

def build_response(signal: TribunalSignal, now: datetime) -> AgentResponse:
    message = signal.message
    body = (message.body_md or "").strip()
    content = body or strip_tag_prefix(message.subject)

    confidence: float | None = None
    disagreements: list[str] = []
    suggestions: list[str] = []
    for line in body.splitlines():
        if confidence is None and (m := _CONFIDENCE_LINE.match(line)):
            confidence = _confidence_fraction(float(m.group(1)), percent=bool(m.group(2)))
        elif m := _DISAGREEMENT_LINE.match(line):
            disagreements.append(m.group(1).strip())
        elif m := _SUGGESTION_LINE.match(line):
            suggestions.append(m.group(1).strip())

    return AgentResponse(
        agent_id=signal.agent_id,
        content=content,
        timestamp=_parse_timestamp(message.created_ts) or now,
        confidence=confidence,
        disagreements=disagreements or None,
        suggestions=suggestions or None,
    )


def _confidence_fraction(value: float, percent: bool) -> float:
    """Confidence is always a 0..1 fraction: "80%", "80" and "0.8" all mean 0.8."""
    if percent or value > 1:
        value = value / 100
    return min(value, 1.0)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
