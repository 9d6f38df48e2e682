import asyncio

import pytest

from services.locks import KeyedLocks


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLocks()
    events = []

    async def worker(name):
        async with locks.hold("inv-1"):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (
        ["a:start", "a:end", "b:start", "b:end"],
        ["b:start", "b:end", "a:start", "a:end"],
    )


@pytest.mark.asyncio
async def test_different_keys_do_not_block():
    locks = KeyedLocks()

    async with locks.hold("inv-1"):
        assert locks.is_locked("inv-1")
        assert not locks.is_locked("inv-2")
        await asyncio.wait_for(_enter(locks, "inv-2"), timeout=1)


async def _enter(locks, key):
    async with locks.hold(key):
        pass


@pytest.mark.asyncio
async def test_unused_entries_are_dropped():
    locks = KeyedLocks()

    async with locks.hold("a"), locks.hold("b"):
        assert len(locks) == 2
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_entry_released_after_error():
    locks = KeyedLocks()

    with pytest.raises(RuntimeError):
        async with locks.hold("a"):
            raise RuntimeError("boom")

    assert len(locks) == 0
    assert not locks.is_locked("a")
