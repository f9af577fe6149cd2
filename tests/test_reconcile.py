from datetime import timedelta

import pytest

from cafe_orders.core.exceptions import FeedIntegrityError, TransportError
from cafe_orders.models import OrderStatus
from cafe_orders.sync.reconcile import map_columns, parse_rows, reconcile, select_latest
from tests.factories import T0, feed_record


def test_marker_mode_picks_the_latest_row():
    records = [
        feed_record("o1", "New"),
        feed_record("o1", "Brewing", current="Latest", minutes=2),
        feed_record("o2", "New", current="latest"),
    ]

    orders = reconcile(records)

    assert [o.id for o in orders] == ["o1", "o2"]
    assert orders[0].order_status == OrderStatus.BREWING
    assert orders[0].toppings == ["Oat Milk", "Extra Shot"]


def test_three_rows_one_latest_returns_that_row():
    records = [
        feed_record("o1", "New", drinkName="Latte", seatingLocation="Bar"),
        feed_record(
            "o1",
            "Brewing",
            current="Latest",
            minutes=3,
            customerName="Ben",
            drinkName="Mocha",
            seatingLocation="Patio",
            toppings="Whipped Cream",
        ),
        feed_record("o1", "On Hold", minutes=1, drinkName="Chai Latte"),
    ]

    [order] = reconcile(records)

    assert order.id == "o1"
    assert order.order_status == OrderStatus.BREWING
    assert order.customer_name == "Ben"
    assert order.drink_name == "Mocha"
    assert order.seating_location == "Patio"
    assert order.toppings == ["Whipped Cream"]
    assert order.timestamp == T0 + timedelta(minutes=3)


def test_revision_mode_ignores_the_marker():
    records = [
        feed_record("o1", "Brewing", revision=2, current="Latest"),
        feed_record("o1", "Delivered", revision=3),
        feed_record("o1", "New", revision=1),
    ]

    [order] = reconcile(records)

    assert order.order_status == OrderStatus.DELIVERED


def test_revision_tie_is_an_integrity_error():
    with pytest.raises(FeedIntegrityError) as exc:
        reconcile([feed_record("o1", revision=2), feed_record("o1", "Brewing", revision=2)])
    assert exc.value.order_ids == ["o1"]


def test_no_marker_is_an_integrity_error():
    with pytest.raises(FeedIntegrityError):
        reconcile([feed_record("o1"), feed_record("o1", "Brewing")])


def test_problems_are_collected_for_every_id():
    records = [
        feed_record("o1", current="Latest"),
        feed_record("o1", "Brewing", current="Latest"),
        feed_record("o2", current="Latest"),
        feed_record("o3"),
    ]

    with pytest.raises(FeedIntegrityError) as exc:
        reconcile(records)

    assert exc.value.order_ids == ["o1", "o3"]
    assert "2 rows marked" in exc.value.problems["o1"]


def test_single_unmarked_row_is_still_ambiguous():
    with pytest.raises(FeedIntegrityError):
        reconcile([feed_record("o1")])


def test_incomplete_rows_are_skipped():
    records = [
        feed_record("o1", current="Latest"),
        feed_record("", current="Latest"),
        feed_record("o2", current="Latest", drinkName=None),
        feed_record("o3", current="Latest", customerName="  "),
    ]

    assert [o.id for o in reconcile(records)] == ["o1"]


def test_positions_follow_the_input():
    rows = parse_rows([feed_record("o1", current="Latest"), feed_record("o2", current="Latest")])
    assert [r.position for r in rows] == [0, 1]
    assert [r.order_id for r in select_latest(rows)] == ["o1", "o2"]


def test_unknown_status_is_a_transport_error():
    with pytest.raises(TransportError):
        reconcile([feed_record("o1", "Exploded", current="Latest")])


def test_gviz_dates_and_numbers():
    record = feed_record(
        "o1",
        current="Latest",
        timestamp="Date(2024,0,15,9,5,0)",
        revision=3.0,
        rating=4.0,
        orderStatus="Delivered",
        feedbackTimestamp="1/15/2024 10:00:00",
    )

    [order] = reconcile([record])

    assert order.timestamp.isoformat() == "2024-01-15T09:05:00+00:00"
    assert order.rating == 4
    assert order.feedback_timestamp.hour == 10


def test_column_labels_are_matched_loosely():
    mapped = map_columns({"Order ID": "o1", "Customer Name": "Ana", "drink_name": "Latte"})
    assert mapped["customerName"] == "Ana"
    assert mapped["drinkName"] == "Latte"
