"""Tribunal State — forward-only status derivation, idempotent under redelivery.

Tests cover:
    - Ping advances idle -> thinking, progress capped at max - 1
    - Completion (DELTA or TRIBUNAL with reply_to) materializes exactly one response
    - Responded is terminal: duplicates and late pings are ignored
    - Final state is independent of duplicate/reordered completions
    - reset_agent never touches a responded agent
"""

from datetime import datetime, timezone

import pytest

from research_core.core.domain_types import AgentStatus
from research_core.core.tribunal_state import (
    apply_messages, initial_state, reset_agent,
)
from research_core.schemas.tribunal import ThreadMessage

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def ping(agent: str = "devils_advocate", **kw) -> ThreadMessage:
    return ThreadMessage(subject=f"TRIBUNAL[{agent}]: thinking", **kw)


def delta(agent: str = "devils_advocate", body: str | None = None, **kw) -> ThreadMessage:
    return ThreadMessage(subject=f"DELTA[{agent}]: verdict", body_md=body, **kw)


def test_initial_state_lists_every_agent_idle():
    state = initial_state(3)
    assert len(state.agents) == 7
    assert all(a.status == AgentStatus.IDLE and a.progress == 0 for a in state.agents.values())


def test_max_progress_must_be_positive():
    with pytest.raises(ValueError):
        initial_state(0)


def test_ping_moves_idle_to_thinking():
    state = initial_state(3)
    changed = apply_messages(state, [ping()], NOW)
    agent = state.agents["devils_advocate"]
    assert changed == ["devils_advocate"]
    assert agent.status == AgentStatus.THINKING
    assert agent.progress == 1


def test_progress_caps_below_max():
    state = initial_state(3)
    apply_messages(state, [ping()] * 5, NOW)
    assert state.agents["devils_advocate"].progress == 2


def test_capped_ping_reports_no_change():
    state = initial_state(2)
    apply_messages(state, [ping()], NOW)
    assert apply_messages(state, [ping()], NOW) == []


def test_completion_forces_max_progress_and_response():
    state = initial_state(3)
    apply_messages(state, [delta(body="Looks confounded.")], NOW)
    agent = state.agents["devils_advocate"]
    assert agent.status == AgentStatus.RESPONDED
    assert agent.progress == 3
    assert agent.response.content == "Looks confounded."
    assert agent.response.timestamp == NOW


def test_tribunal_reply_completes():
    state = initial_state(3)
    apply_messages(state, [ping("synthesis", reply_to=4)], NOW)
    assert state.agents["synthesis"].status == AgentStatus.RESPONDED


def test_same_completion_twice_yields_one_response():
    state = initial_state(3)
    first = delta(body="First verdict", id=10)
    apply_messages(state, [first], NOW)
    response = state.agents["devils_advocate"].response
    changed = apply_messages(state, [first, delta(body="Second verdict", id=11)], NOW)
    assert changed == []
    assert state.agents["devils_advocate"].response is response
    assert response.content == "First verdict"


def test_ping_after_response_does_not_regress():
    state = initial_state(3)
    apply_messages(state, [delta()], NOW)
    apply_messages(state, [ping(), ping()], NOW)
    agent = state.agents["devils_advocate"]
    assert agent.status == AgentStatus.RESPONDED
    assert agent.progress == 3


def test_reordered_batches_converge():
    messages = [ping(), delta(body="done"), ping(), delta(body="dup")]
    forward, backward = initial_state(3), initial_state(3)
    apply_messages(forward, messages, NOW)
    apply_messages(backward, [messages[1], *messages[::-1]], NOW)
    for agent_id in forward.agents:
        assert forward.agents[agent_id].status == backward.agents[agent_id].status
        assert forward.agents[agent_id].progress == backward.agents[agent_id].progress


def test_foreign_and_unknown_messages_are_ignored():
    state = initial_state(3)
    changed = apply_messages(
        state, [ThreadMessage(subject="hello"), ping("reviewer_two")], NOW,
    )
    assert changed == []


def test_response_fields_are_parsed_from_body():
    body = "\n".join([
        "Overall the design holds.",
        "Confidence: 70%",
        "Disagreement: sample too small",
        "Suggestion: add a potency control",
        "Suggestions: replicate in yeast",
    ])
    state = initial_state(3)
    apply_messages(
        state, [delta("test_designer", body=body, created_ts="2026-03-01T10:00:00Z")], NOW,
    )
    response = state.agents["test_designer"].response
    assert response.confidence == pytest.approx(0.7)
    assert response.disagreements == ["sample too small"]
    assert response.suggestions == ["add a potency control", "replicate in yeast"]
    assert response.timestamp == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("line,expected", [
    ("Confidence: 80%", 0.8),
    ("Confidence: 80", 0.8),
    ("confidence: 0.8", 0.8),
    ("Confidence: 1", 1.0),
    ("Confidence: 250%", 1.0),
])
def test_confidence_is_always_a_fraction(line, expected):
    state = initial_state(3)
    apply_messages(state, [delta("synthesis", body=line)], NOW)
    assert state.agents["synthesis"].response.confidence == pytest.approx(expected)


def test_response_without_body_uses_subject_remainder():
    state = initial_state(3)
    apply_messages(state, [ThreadMessage(subject="DELTA[synthesis]: Ship it")], NOW)
    response = state.agents["synthesis"].response
    assert response.content == "Ship it"
    assert response.confidence is None
    assert response.suggestions is None


def test_reset_returns_thinking_agent_to_idle():
    state = initial_state(3)
    apply_messages(state, [ping()], NOW)
    assert reset_agent(state, "devils_advocate")
    agent = state.agents["devils_advocate"]
    assert (agent.status, agent.progress) == (AgentStatus.IDLE, 0)


def test_reset_keeps_responded_agent():
    state = initial_state(3)
    apply_messages(state, [delta()], NOW)
    assert not reset_agent(state, "devils_advocate")
    assert state.agents["devils_advocate"].status == AgentStatus.RESPONDED


def test_reset_idle_agent_is_noop():
    assert not reset_agent(initial_state(3), "synthesis")
