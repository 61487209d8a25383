"""Tribunal Registry — one synchronizer per thread, nothing left running after close.

Tests cover:
    - Concurrent opens for the same thread end with exactly one registered synchronizer
    - Every replaced synchronizer is closed and its poll task finished
    - close_all() stops polling for good
"""

import asyncio

import httpx
import pytest

from research_core.config import Settings
from research_core.core.domain_types import TribunalMode
from research_core.core.errors import ResourceNotFoundError
from research_core.infrastructure.realtime_client import RealtimeClient
from research_core.services.tribunal_registry import TribunalRegistry


@pytest.fixture
def polls() -> list[httpx.Request]:
    return []


@pytest.fixture
async def registry(scheduler, polls):
    def handler(request: httpx.Request) -> httpx.Response:
        polls.append(request)
        return httpx.Response(200, json={"newMessages": []})

    client = RealtimeClient("http://realtime.test", transport=httpx.MockTransport(handler))
    registry = TribunalRegistry(Settings(realtime_poll_interval_ms=500), scheduler, client)
    yield registry
    await registry.close_all()


async def test_concurrent_opens_leave_one_synchronizer(registry):
    first = await registry.open("t", TribunalMode.LIVE)
    mock, live = await asyncio.gather(
        registry.open("t", TribunalMode.MOCK),
        registry.open("t", TribunalMode.LIVE),
    )

    assert len(registry) == 1
    assert registry.get("t") is live
    assert first.closed
    assert mock.closed
    assert not live.closed


async def test_close_all_stops_every_poll_task(registry, polls):
    await registry.open("t", TribunalMode.LIVE)
    _, live = await asyncio.gather(
        registry.open("t", TribunalMode.MOCK),
        registry.open("t", TribunalMode.LIVE),
    )
    task = live._producer._task
    await asyncio.sleep(0.01)

    await registry.close_all()
    assert live.closed
    assert task.done()
    seen = len(polls)
    await asyncio.sleep(0.6)
    assert len(polls) == seen


async def test_same_mode_open_is_reused(registry):
    first = await registry.open("t", TribunalMode.MOCK)
    again, other = await asyncio.gather(
        registry.open("t", TribunalMode.MOCK),
        registry.open("t", TribunalMode.MOCK),
    )
    assert first is again is other


async def test_close_unknown_thread_raises(registry):
    with pytest.raises(ResourceNotFoundError):
        await registry.close("nope")
