"""Behaviour every order store backend must share."""

import asyncio

import pytest

from cafe_orders.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from cafe_orders.models import Actor, OrderDraft, OrderStatus
from cafe_orders.stores import FeedOrderStore, JsonFileOrderStore, SqlOrderStore
from cafe_orders.sync.feed import MockFeedClient
from cafe_orders.sync.local_cache import LocalOrderCache


@pytest.fixture(params=["json", "database", "sheet"])
async def store(request, tmp_path):
    if request.param == "json":
        yield JsonFileOrderStore(tmp_path / "orders.json")
    elif request.param == "database":
        sql = SqlOrderStore(url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
        await sql.init()
        yield sql
        await sql.close()
    else:
        feed = MockFeedClient(min_latency=0.001, max_latency=0.003)
        yield FeedOrderStore(feed, LocalOrderCache(tmp_path / "cache.json"))


async def test_create_assigns_server_fields(store, draft):
    order = await store.create(draft, customer_id="cust-1")

    assert order.id
    assert order.customer_id == "cust-1"
    assert order.order_status == OrderStatus.NEW
    assert order.toppings == ["Oat Milk"]
    assert [o.id for o in await store.list_all()] == [order.id]


async def test_create_requires_fields(store):
    with pytest.raises(ValidationError) as exc:
        await store.create(OrderDraft(customer_name="Ana", drink_name="   "), customer_id="cust-1")

    assert exc.value.fields == ["drinkName", "seatingLocation"]
    assert await store.list_all() == []


async def test_ids_are_unique(store, draft):
    first = await store.create(draft, customer_id="cust-1")
    second = await store.create(draft, customer_id="cust-1")
    assert first.id != second.id


async def test_get_unknown_order(store):
    with pytest.raises(NotFoundError):
        await store.get("missing")
    with pytest.raises(NotFoundError):
        await store.update_status("missing", OrderStatus.BREWING)


async def test_status_changes_persist(store, draft):
    order = await store.create(draft, customer_id="cust-1")

    brewing = await store.update_status(order.id, OrderStatus.BREWING)
    delivered = await store.update_status(order.id, OrderStatus.DELIVERED)

    assert brewing.timestamp >= order.timestamp
    assert delivered.order_status == OrderStatus.DELIVERED
    assert (await store.get(order.id)).order_status == OrderStatus.DELIVERED


async def test_illegal_transition_leaves_order_alone(store, draft):
    order = await store.create(draft, customer_id="cust-1")

    with pytest.raises(InvalidStateError):
        await store.update_status(order.id, OrderStatus.DELIVERED)

    assert (await store.get(order.id)).order_status == OrderStatus.NEW


async def test_same_status_is_idempotent_for_staff(store, draft):
    order = await store.create(draft, customer_id="cust-1")
    brewing = await store.update_status(order.id, OrderStatus.BREWING)

    again = await store.update_status(order.id, OrderStatus.BREWING)

    assert again.timestamp == brewing.timestamp


async def test_customer_cancellation(store, draft):
    order = await store.create(draft, customer_id="cust-1")

    cancelled = await store.update_status(order.id, OrderStatus.CANCELLED, actor=Actor.CUSTOMER)
    assert cancelled.order_status == OrderStatus.CANCELLED

    with pytest.raises(InvalidStateError):
        await store.update_status(order.id, OrderStatus.CANCELLED, actor=Actor.CUSTOMER)


async def test_double_cancel_is_collapsed(store, draft):
    order = await store.create(draft, customer_id="cust-1")

    results = await asyncio.gather(
        store.update_status(order.id, OrderStatus.CANCELLED, actor=Actor.CUSTOMER),
        store.update_status(order.id, OrderStatus.CANCELLED, actor=Actor.CUSTOMER),
    )

    assert [r.order_status for r in results] == [OrderStatus.CANCELLED] * 2


async def test_feedback(store, draft):
    order = await store.create(draft, customer_id="cust-1")

    with pytest.raises(InvalidStateError):
        await store.attach_feedback(order.id, 5, "Too early")

    await store.update_status(order.id, OrderStatus.BREWING)
    await store.update_status(order.id, OrderStatus.DELIVERED)
    rated = await store.attach_feedback(order.id, 5, "Lovely")

    assert rated.rating == 5
    assert rated.order_status == OrderStatus.DELIVERED
    assert (await store.get(order.id)).feedback_comment == "Lovely"

    with pytest.raises(InvalidStateError):
        await store.attach_feedback(order.id, 3)


async def test_invalid_rating_is_rejected_before_lookup(store):
    with pytest.raises(ValidationError):
        await store.attach_feedback("missing", 9)


async def test_list_by_customer_and_stats(store, draft):
    mine = await store.create(draft, customer_id="cust-1")
    theirs = await store.create(draft, customer_id="cust-2")
    await store.update_status(theirs.id, OrderStatus.BREWING)

    assert [o.id for o in await store.list_by_customer("cust-1")] == [mine.id]

    stats = await store.stats()
    assert (stats.total, stats.new, stats.brewing, stats.completed, stats.cancelled) == (2, 1, 1, 0, 0)


async def test_health_check(store):
    assert await store.health_check() is True
