import asyncio

import pytest

from foodrescue.core.locks import KeyedLock

pytestmark = pytest.mark.anyio


async def test_same_key_is_serialised():
    locks = KeyedLock()
    trace = []

    async def worker(name):
        async with locks.hold("donation-1"):
            trace.append(f"{name}:in")
            await asyncio.sleep(0.01)
            trace.append(f"{name}:out")

    await asyncio.gather(worker("a"), worker("b"), worker("c"))

    for i in range(0, len(trace), 2):
        assert trace[i].split(":")[0] == trace[i + 1].split(":")[0]
    assert len(locks) == 0


async def test_different_keys_do_not_block_each_other():
    locks = KeyedLock()
    inside = asyncio.Event()

    async def holder():
        async with locks.hold("a"):
            inside.set()
            await asyncio.sleep(0.05)

    task = asyncio.create_task(holder())
    await inside.wait()
    async with locks.hold("b"):
        assert len(locks) == 2
    await task
    assert len(locks) == 0


async def test_lock_released_on_error():
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold("k"):
            raise RuntimeError("boom")
    assert len(locks) == 0
    async with locks.hold("k"):
        pass
