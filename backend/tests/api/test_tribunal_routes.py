"""Tribunal Routes — open/observe/drive/close synchronizers and the SSE event feed.

Tests cover:
    - Mock tribunal driven end-to-end through invoke + scheduler advance
    - Live tribunal rejects controls with 409
    - DELETE tears down: pending timers cleared, later lookups 404
    - SSE generator: initial snapshot, change events, done after close
"""

import json

import pytest

from research_core.api.routes.tribunal import tribunal_events
from research_core.core.domain_types import TribunalMode


def agent(snapshot: dict, agent_id: str) -> dict:
    return next(a for a in snapshot["agents"] if a["agent_id"] == agent_id)


def parse_sse(line: str) -> dict:
    assert line.startswith("data: ") and line.endswith("\n\n")
    return json.loads(line[len("data: "):])


async def test_open_mock_tribunal(client):
    res = await client.post("/api/v1/tribunal/demo", params={"mode": "mock"})
    assert res.status_code == 201
    body = res.json()
    assert body["mode"] == "mock"
    assert body["controls_enabled"] is True
    assert len(body["agents"]) == 7
    assert all(a["status"] == "idle" for a in body["agents"])


async def test_open_is_idempotent_per_mode(client, registry):
    await client.post("/api/v1/tribunal/demo", params={"mode": "mock"})
    first = registry.get("demo")
    await client.post("/api/v1/tribunal/demo", params={"mode": "mock"})
    assert registry.get("demo") is first
    assert len(registry) == 1


async def test_unknown_tribunal_returns_404(client):
    res = await client.get("/api/v1/tribunal/nope")
    assert res.status_code == 404


async def test_invoke_drives_agent_to_response(client, scheduler):
    await client.post("/api/v1/tribunal/demo", params={"mode": "mock"})
    res = await client.post("/api/v1/tribunal/demo/agents/devils_advocate/invoke")
    assert res.status_code == 200
    assert res.json()["accepted"] is True

    scheduler.advance(2)
    snapshot = (await client.get("/api/v1/tribunal/demo")).json()
    assert agent(snapshot, "devils_advocate")["status"] == "thinking"

    scheduler.advance(10)
    snapshot = (await client.get("/api/v1/tribunal/demo")).json()
    view = agent(snapshot, "devils_advocate")
    assert view["status"] == "responded"
    assert view["progress"] == view["max_progress"]
    assert view["response"]["suggestions"]


async def test_cancel_resets_agent(client, scheduler):
    await client.post("/api/v1/tribunal/demo", params={"mode": "mock"})
    await client.post("/api/v1/tribunal/demo/agents/synthesis/invoke")
    scheduler.advance(2)
    res = await client.post("/api/v1/tribunal/demo/agents/synthesis/cancel")
    assert res.json()["accepted"] is True
    assert agent(res.json()["snapshot"], "synthesis")["status"] == "idle"
    scheduler.advance(20)
    snapshot = (await client.get("/api/v1/tribunal/demo")).json()
    assert agent(snapshot, "synthesis")["status"] == "idle"


async def test_unknown_agent_returns_409(client):
    await client.post("/api/v1/tribunal/demo", params={"mode": "mock"})
    res = await client.post("/api/v1/tribunal/demo/agents/reviewer_two/invoke")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "TRIBUNAL_CONTROL_UNAVAILABLE"


async def test_live_tribunal_rejects_controls(client):
    res = await client.post("/api/v1/tribunal/RS-1", params={"mode": "live"})
    assert res.json()["controls_enabled"] is False
    res = await client.post("/api/v1/tribunal/RS-1/agents/synthesis/invoke")
    assert res.status_code == 409


async def test_delete_clears_pending_timers(client, scheduler, registry):
    await client.post("/api/v1/tribunal/demo", params={"mode": "mock"})
    await client.post("/api/v1/tribunal/demo/agents/synthesis/invoke")
    assert scheduler.live_timers > 0

    res = await client.delete("/api/v1/tribunal/demo")
    assert res.status_code == 204
    assert scheduler.live_timers == 0
    assert "demo" not in registry
    assert (await client.get("/api/v1/tribunal/demo")).status_code == 404


async def test_reopen_with_other_mode_replaces_synchronizer(client, registry):
    await client.post("/api/v1/tribunal/demo", params={"mode": "mock"})
    mock = registry.get("demo")
    res = await client.post("/api/v1/tribunal/demo", params={"mode": "live"})
    assert res.json()["mode"] == "live"
    assert mock.closed


async def test_invalid_mode_is_rejected(client):
    res = await client.post("/api/v1/tribunal/demo", params={"mode": "dream"})
    assert res.status_code == 400


# --- SSE feed -----------------------------------------------------------------

async def test_event_feed_emits_snapshots_then_done(registry, scheduler):
    sync = await registry.open("demo", TribunalMode.MOCK)
    events = tribunal_events(sync, keepalive_seconds=0.01)

    first = parse_sse(await events.__anext__())
    assert first["type"] == "tribunal_state"
    assert first["data"]["thread_id"] == "demo"

    sync.invoke("synthesis")
    scheduler.advance(1)
    change = parse_sse(await events.__anext__())
    assert agent(change["data"], "synthesis")["status"] == "thinking"

    await registry.close("demo")
    remaining = [line async for line in events]
    assert parse_sse(remaining[-1]) == {"type": "done", "data": {"thread_id": "demo"}}


async def test_event_feed_unsubscribes_on_exit(registry):
    sync = await registry.open("demo", TribunalMode.MOCK)
    events = tribunal_events(sync, keepalive_seconds=0.01)
    await events.__anext__()
    assert len(sync._listeners) == 1
    await events.aclose()
    assert sync._listeners == []
