import pytest

from cafe_orders.database import OrderRecord
from cafe_orders.models import OrderStatus
from cafe_orders.stores import SqlOrderStore
from tests.factories import make_order


@pytest.fixture
async def store(tmp_path):
    sql = SqlOrderStore(url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    await sql.init()
    yield sql
    await sql.close()


def test_record_round_trip():
    order = make_order(
        "o1",
        OrderStatus.DELIVERED,
        toppings=["Oat Milk", "Extra Shot"],
        special_instructions="Extra hot",
        rating=4,
        feedback_comment="Good",
    )

    assert OrderRecord.from_order(order).to_order() == order


async def test_orders_survive_a_new_engine(tmp_path, draft):
    url = f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}"
    first = SqlOrderStore(url=url)
    await first.init()
    order = await first.create(draft, customer_id="cust-1")
    await first.close()

    second = SqlOrderStore(url=url)
    stored = await second.get(order.id)
    await second.close()

    assert stored.customer_name == "Ana"
    assert stored.toppings == ["Oat Milk"]
    assert stored.timestamp == order.timestamp


async def test_customer_filter_runs_in_the_database(store, draft):
    for customer in ["a", "b", "a"]:
        await store.create(draft, customer_id=customer)

    orders = await store.list_by_customer("a")

    assert len(orders) == 2
    assert {o.customer_id for o in orders} == {"a"}
