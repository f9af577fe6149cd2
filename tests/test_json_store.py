import json

import pytest

from cafe_orders.core.exceptions import TransportError
from cafe_orders.models import OrderStatus
from cafe_orders.stores import JsonFileOrderStore
from cafe_orders.sync.local_cache import LocalOrderCache
from tests.factories import make_order


async def test_file_is_created_lazily(tmp_path, draft):
    path = tmp_path / "nested" / "orders.json"
    store = JsonFileOrderStore(path)

    assert not path.exists()
    assert await store.list_all() == []

    await store.create(draft, customer_id="cust-1")
    assert path.exists()


async def test_orders_survive_reopen(tmp_path, draft):
    path = tmp_path / "orders.json"
    order = await JsonFileOrderStore(path).create(draft, customer_id="cust-1")
    await JsonFileOrderStore(path).update_status(order.id, OrderStatus.BREWING)

    reopened = JsonFileOrderStore(path)
    [stored] = await reopened.list_all()

    assert stored.id == order.id
    assert stored.order_status == OrderStatus.BREWING
    assert stored.timestamp.tzinfo is not None


async def test_file_uses_wire_names(tmp_path, draft):
    path = tmp_path / "orders.json"
    await JsonFileOrderStore(path).create(draft, customer_id="cust-1")

    [raw] = json.loads(path.read_text(encoding="utf-8"))

    assert raw["customerName"] == "Ana"
    assert raw["orderStatus"] == "New"
    assert raw["toppings"] == ["Oat Milk"]


async def test_corrupt_file_is_a_transport_error(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text("{oops", encoding="utf-8")

    with pytest.raises(TransportError):
        await JsonFileOrderStore(path).list_all()
    assert await JsonFileOrderStore(path).health_check() is False


def test_local_cache_update_in_place(tmp_path):
    cache = LocalOrderCache(tmp_path / "cache.json")
    cache.append(make_order("o1"))
    cache.append(make_order("o2", customer_id="cust-2"))

    assert cache.update(make_order("o1", status=OrderStatus.CANCELLED)) is True
    assert cache.update(make_order("unknown")) is False

    assert [o.order_status for o in cache.load()] == [OrderStatus.CANCELLED, OrderStatus.NEW]
    assert [o.id for o in cache.list_by_customer("cust-2")] == ["o2"]


async def test_noop_status_change_does_not_rewrite_file(tmp_path, draft, monkeypatch):
    store = JsonFileOrderStore(tmp_path / "orders.json")
    order = await store.create(draft, customer_id="cust-1")
    brewing = await store.update_status(order.id, OrderStatus.BREWING)

    def fail_dump(items):
        raise AssertionError("file rewritten")

    monkeypatch.setattr(store.document, "_dump", fail_dump)

    again = await store.update_status(order.id, OrderStatus.BREWING)
    assert again.timestamp == brewing.timestamp
    assert again.order_status == OrderStatus.BREWING


def test_local_cache_update_of_unknown_order_skips_write(tmp_path, monkeypatch):
    cache = LocalOrderCache(tmp_path / "cache.json")
    cache.append(make_order("o1"))
    monkeypatch.setattr(cache.document, "_dump", lambda items: pytest.fail("file rewritten"))

    assert cache.update(make_order("unknown")) is False
