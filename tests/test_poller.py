import asyncio

from cafe_orders.core.exceptions import FeedIntegrityError, TransportError
from cafe_orders.services.poller import OrderPoller, customer_poller, staff_poller
from tests.factories import make_order


class FlakyFetch:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        result = self.results.pop(0) if self.results else []
        if isinstance(result, Exception):
            raise result
        return result


async def test_failed_poll_keeps_last_known_list():
    orders = [make_order("o1")]
    seen = []
    poller = OrderPoller(FlakyFetch(orders, TransportError("offline")), interval=10, on_update=seen.append)

    assert await poller.poll_once() == orders
    assert await poller.poll_once() == orders

    assert poller.is_stale
    assert seen == [orders]


async def test_inconsistent_feed_keeps_last_known_list():
    orders = [make_order("o1")]
    poller = OrderPoller(FlakyFetch(orders, FeedIntegrityError({"o1": "no row marked Latest"})), interval=10)

    await poller.poll_once()
    assert await poller.poll_once() == orders
    assert poller.is_stale


async def test_recovery_clears_stale_flag():
    poller = OrderPoller(FlakyFetch(TransportError("offline"), [make_order("o2")]), interval=10)

    assert await poller.poll_once() == []
    assert poller.is_stale
    await poller.poll_once()
    assert not poller.is_stale
    assert [o.id for o in poller.last_known] == ["o2"]


async def test_async_update_callback():
    received = []

    async def on_update(orders):
        received.extend(orders)

    poller = OrderPoller(FlakyFetch([make_order("o1")]), interval=10, on_update=on_update)
    await poller.poll_once()

    assert [o.id for o in received] == ["o1"]


async def test_start_and_stop():
    fetch = FlakyFetch()
    poller = OrderPoller(fetch, interval=0.01)

    await poller.start()
    await asyncio.sleep(0.05)
    assert poller.is_running
    await poller.stop()

    calls = fetch.calls
    await asyncio.sleep(0.03)
    assert not poller.is_running
    assert calls >= 2
    assert fetch.calls == calls


class StubStore:
    async def list_all(self):
        return [make_order("o1", customer_id="a"), make_order("o2", customer_id="b")]

    async def list_by_customer(self, customer_id):
        return [o for o in await self.list_all() if o.customer_id == customer_id]


async def test_customer_and_staff_intervals():
    store = StubStore()
    customer = customer_poller(store, "a")
    staff = staff_poller(store)

    assert customer.interval == 10
    assert staff.interval == 30
    assert [o.id for o in await customer.poll_once()] == ["o1"]
    assert len(await staff.poll_once()) == 2


async def test_unexpected_error_does_not_stop_the_loop():
    fetch = FlakyFetch(RuntimeError("bad record"), [make_order("o1")])
    poller = OrderPoller(fetch, interval=0.01)

    await poller.start()
    await asyncio.sleep(0.05)
    try:
        assert poller.is_running
        assert fetch.calls >= 2
        assert [o.id for o in poller.last_known] == ["o1"]
    finally:
        await poller.stop()
