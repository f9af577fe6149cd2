import asyncio

import pytest

from cafe_orders.services.single_flight import SingleFlight


async def test_identical_calls_share_one_execution():
    flight = SingleFlight()
    calls = 0

    async def work():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return "done"

    results = await asyncio.gather(*[flight.run("k", work) for _ in range(5)])

    assert results == ["done"] * 5
    assert calls == 1
    assert flight.in_flight == 0


async def test_different_keys_run_separately():
    flight = SingleFlight()
    calls = []

    async def work(key):
        calls.append(key)
        await asyncio.sleep(0)
        return key

    results = await asyncio.gather(flight.run("a", lambda: work("a")), flight.run("b", lambda: work("b")))

    assert results == ["a", "b"]
    assert sorted(calls) == ["a", "b"]


async def test_errors_reach_every_caller():
    flight = SingleFlight()

    async def boom():
        await asyncio.sleep(0.01)
        raise ValueError("nope")

    results = await asyncio.gather(flight.run("k", boom), flight.run("k", boom), return_exceptions=True)

    assert all(isinstance(r, ValueError) for r in results)


async def test_key_is_released_after_completion():
    flight = SingleFlight()
    calls = 0

    async def work():
        nonlocal calls
        calls += 1
        return calls

    assert await flight.run("k", work) == 1
    assert await flight.run("k", work) == 2


async def test_cancelled_leader_cancels_joiners():
    flight = SingleFlight()
    started = asyncio.Event()

    async def slow():
        started.set()
        await asyncio.sleep(10)

    leader = asyncio.create_task(flight.run("k", slow))
    await started.wait()
    joiner = asyncio.create_task(flight.run("k", slow))
    await asyncio.sleep(0)

    leader.cancel()

    with pytest.raises(asyncio.CancelledError):
        await joiner
    assert flight.in_flight == 0
