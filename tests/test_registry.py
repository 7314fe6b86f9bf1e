"""Tests for the fleet registry."""

import asyncio

import pytest

from botfleet.core.exceptions import AlreadyRunning, Conflict


@pytest.mark.asyncio
async def test_reserve_rejects_duplicate_token(registry):
    first, second = object(), object()
    await registry.reserve("xoxb-a", first)

    with pytest.raises(AlreadyRunning) as exc_info:
        await registry.reserve("xoxb-a", second)

    assert isinstance(exc_info.value, Conflict)
    assert exc_info.value.details["token"] == "xoxb-a***"
    assert registry.get("xoxb-a") is first
    assert registry.bots_count == 1


@pytest.mark.asyncio
async def test_concurrent_reserve_admits_one(registry):
    results = await asyncio.gather(
        *(registry.reserve("xoxb-a", object()) for _ in range(10)),
        return_exceptions=True,
    )
    assert sum(r is None for r in results) == 1
    assert all(isinstance(r, AlreadyRunning) for r in results if r is not None)


@pytest.mark.asyncio
async def test_release_only_matching_instance(registry):
    current = object()
    await registry.reserve("xoxb-a", current)

    assert await registry.release("xoxb-a", object()) is False
    assert registry.is_running("xoxb-a")

    assert await registry.release("xoxb-a", current) is True
    assert not registry.is_running("xoxb-a")
    assert await registry.release("xoxb-a") is False


def test_session_for_is_stable(registry):
    session = registry.session_for("C1")
    assert registry.session_for("C1") == session
    assert registry.session_for("C2") != session
    assert registry.session_count == 2
