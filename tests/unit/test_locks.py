import asyncio

from legalchat.services.locks import KeyedLocks


def test_same_key_is_serialized_and_released():
    locks = KeyedLocks()
    events = []

    async def worker(name, delay):
        async with locks.hold("conv-1"):
            events.append(f"{name}-in")
            await asyncio.sleep(delay)
            events.append(f"{name}-out")

    async def scenario():
        await asyncio.gather(worker("a", 0.02), worker("b", 0))

    asyncio.run(scenario())
    assert events == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


def test_different_keys_do_not_block_each_other():
    locks = KeyedLocks()
    events = []

    async def worker(key, delay):
        async with locks.hold(key):
            events.append(f"{key}-in")
            await asyncio.sleep(delay)
            events.append(f"{key}-out")

    async def scenario():
        await asyncio.gather(worker("x", 0.02), worker("y", 0))

    asyncio.run(scenario())
    assert events.index("y-out") < events.index("x-out")


def test_disabled_locks_do_nothing():
    locks = KeyedLocks(enabled=False)

    async def scenario():
        async with locks.hold("k"):
            return len(locks)

    assert asyncio.run(scenario()) == 0
