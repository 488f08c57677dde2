"""Tests for the per-key asyncio lock."""

import asyncio

import pytest

from timekeeper.core.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialised():
    locks = KeyedLock()
    events: list[str] = []

    async def worker(name: str):
        async with locks.hold(("EMP-1", "2024-03-04")):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(worker("a"), worker("b"))
    assert events in (
        ["a:start", "a:end", "b:start", "b:end"],
        ["b:start", "b:end", "a:start", "a:end"],
    )


@pytest.mark.asyncio
async def test_different_keys_run_concurrently():
    locks = KeyedLock()
    inside = 0
    peak = 0

    async def worker(key: str):
        nonlocal inside, peak
        async with locks.hold(key):
            inside += 1
            peak = max(peak, inside)
            await asyncio.sleep(0.01)
            inside -= 1

    await asyncio.gather(worker("a"), worker("b"), worker("c"))
    assert peak == 3


@pytest.mark.asyncio
async def test_idle_locks_are_dropped():
    locks = KeyedLock()
    async with locks.hold("k"):
        assert "k" in locks
        assert len(locks) == 1
    assert "k" not in locks
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_released_on_error():
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold("k"):
            raise RuntimeError("boom")
    assert len(locks) == 0
    async with locks.hold("k"):
        pass
