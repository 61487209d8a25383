"""Mock Thread Producer — staggered synthetic pings/completions on cancellable timers.

Tests cover:
    - invoke schedules N pings plus one completion, delivered in time order
    - cancel clears exactly that agent's timers
    - cancel-then-invoke never delivers two completions
    - stop clears every timer and nothing is delivered afterwards
"""

import pytest

from research_core.core.domain_types import SignalKind
from research_core.core.tribunal_tags import classify_message
from research_core.services.tribunal_producers import MockThreadProducer


@pytest.fixture
def delivered():
    return []


@pytest.fixture
def producer(scheduler, clock, delivered):
    p = MockThreadProducer(
        scheduler, "mock-thread", progress_steps=3,
        step_delay_seconds=1.0, completion_delay_seconds=5.0, clock=clock,
    )
    p.start(delivered.append)
    return p


def signals(updates):
    return [classify_message(m) for u in updates for m in u.new_messages]


def completions(updates, agent_id):
    return [
        s for s in signals(updates)
        if s.agent_id == agent_id and s.kind == SignalKind.COMPLETION
    ]


def test_invoke_schedules_pings_and_one_completion(producer, scheduler, delivered):
    producer.invoke("devils_advocate")
    assert producer.pending_timers("devils_advocate") == 4

    scheduler.advance(10)
    kinds = [s.kind for s in signals(delivered)]
    assert kinds == [SignalKind.PING] * 3 + [SignalKind.COMPLETION]
    assert producer.pending_timers() == 0


def test_messages_use_tag_grammar(producer, scheduler, delivered):
    producer.invoke("test_designer")
    scheduler.advance(10)
    first, last = delivered[0].new_messages[0], delivered[-1].new_messages[0]
    assert first.subject.startswith("TRIBUNAL[test_designer]")
    assert first.reply_to is None
    assert last.subject.startswith("DELTA[test_designer]")
    assert "Confidence:" in last.body_md


def test_pings_arrive_before_completion_deadline(producer, scheduler, delivered):
    producer.invoke("synthesis")
    scheduler.advance(3.5)
    assert [s.kind for s in signals(delivered)] == [SignalKind.PING] * 3
    assert producer.pending_timers("synthesis") == 1


def test_cancel_clears_only_that_agent(producer, scheduler, delivered):
    producer.invoke("devils_advocate")
    producer.invoke("synthesis")
    assert producer.cancel("devils_advocate") == 4
    scheduler.advance(10)
    assert {s.agent_id for s in signals(delivered)} == {"synthesis"}


def test_cancel_then_invoke_yields_one_completion(producer, scheduler, delivered):
    producer.invoke("devils_advocate")
    scheduler.advance(2)
    producer.cancel("devils_advocate")
    producer.invoke("devils_advocate")
    scheduler.advance(20)
    assert len(completions(delivered, "devils_advocate")) == 1


def test_double_invoke_yields_one_completion(producer, scheduler, delivered):
    producer.invoke("devils_advocate")
    producer.invoke("devils_advocate")
    assert producer.pending_timers("devils_advocate") == 4
    scheduler.advance(20)
    assert len(completions(delivered, "devils_advocate")) == 1


async def test_stop_clears_every_timer(producer, scheduler, delivered):
    for agent in ("devils_advocate", "synthesis", "test_designer"):
        producer.invoke(agent)
    scheduler.advance(1.5)
    delivered.clear()

    await producer.stop()
    assert producer.pending_timers() == 0
    assert scheduler.live_timers == 0
    scheduler.advance(60)
    assert delivered == []


async def test_fired_stale_handle_is_not_delivered(producer, scheduler, delivered):
    class LeakyScheduler:
        """Ignores cancel(): the producer must still drop the callback."""
        def __init__(self):
            self.callbacks = []

        def call_later(self, delay, callback):
            self.callbacks.append(callback)
            return self

        def cancel(self):
            pass

    leaky = LeakyScheduler()
    p = MockThreadProducer(leaky, "t", progress_steps=1, step_delay_seconds=1, completion_delay_seconds=2)
    p.start(delivered.append)
    p.invoke("synthesis")
    await p.stop()
    for callback in leaky.callbacks:
        callback()
    assert delivered == []


def test_completion_must_follow_last_step(scheduler):
    with pytest.raises(ValueError):
        MockThreadProducer(scheduler, "t", progress_steps=3, step_delay_seconds=2, completion_delay_seconds=5)
