import json

from cafe_orders.services.catalog import CatalogService, drink_from_row, topping_from_row
from cafe_orders.sync.feed import MockFeedClient


async def test_menu_from_feed():
    catalog = CatalogService(feed=MockFeedClient())

    drinks = await catalog.list_drinks()
    toppings = await catalog.list_toppings()

    assert len(drinks) == 5
    iced = next(d for d in drinks if d.name == "Iced Americano")
    assert iced.price == 3.5
    assert iced.temperature == "iced"
    assert [t.name for t in toppings][:2] == ["Oat Milk", "Vanilla Syrup"]


async def test_feed_failure_degrades_to_empty_lists():
    catalog = CatalogService(feed=MockFeedClient(failure_rate=1.0))

    assert await catalog.list_drinks() == []
    assert await catalog.list_toppings() == []


def test_rows_without_id_or_name_are_dropped():
    assert drink_from_row(["", "Latte", 4]) is None
    assert drink_from_row(["1", None]) is None
    assert topping_from_row(["7", "Honey"]).price == 0.0


def test_row_defaults():
    drink = drink_from_row([2.0, "Mocha", "$4.75", None, "HOT"])

    assert drink.id == "2"
    assert drink.price == 4.75
    assert drink.description == ""
    assert drink.temperature == "warm"


async def test_menu_from_file(tmp_path):
    path = tmp_path / "menu.json"
    path.write_text(json.dumps({
        "drinks": [{"id": "1", "name": "Latte", "price": 4.5, "temperature": "warm"}],
        "toppings": [{"id": "1", "name": "Oat Milk", "price": 0.5}],
    }), encoding="utf-8")
    catalog = CatalogService(menu_path=path)

    assert [d.name for d in await catalog.list_drinks()] == ["Latte"]
    assert [t.name for t in await catalog.list_toppings()] == ["Oat Milk"]
    assert catalog.source == "file"


async def test_missing_or_broken_file(tmp_path):
    assert await CatalogService(menu_path=tmp_path / "nope.json").list_drinks() == []

    broken = tmp_path / "menu.json"
    broken.write_text("[1, 2", encoding="utf-8")
    assert await CatalogService(menu_path=broken).list_toppings() == []
