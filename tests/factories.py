"""Builders for orders and raw feed records used across the tests."""

from datetime import datetime, timedelta, timezone

from cafe_orders.models import Order, OrderStatus

T0 = datetime(2024, 1, 15, 9, 5, tzinfo=timezone.utc)


def make_order(order_id="o1", status=OrderStatus.NEW, customer_id="cust-1", **extra) -> Order:
    values = dict(
        id=order_id,
        customer_id=customer_id,
        customer_name="Ana",
        drink_name="Flat White",
        seating_location="Window 2",
        order_status=status,
        timestamp=T0,
    )
    values.update(extra)
    return Order(**values)


def feed_record(order_id, status="New", revision=None, current=None, minutes=0, **extra) -> dict:
    """A raw order-tab record as the feed returns it."""
    record = {
        "id": order_id,
        "customerId": "cust-1",
        "customerName": "Ana",
        "drinkName": "Flat White",
        "seatingLocation": "Window 2",
        "toppings": "Oat Milk, Extra Shot",
        "orderStatus": status,
        "timestamp": (T0 + timedelta(minutes=minutes)).isoformat(),
        "revision": revision,
        "current": current,
    }
    record.update(extra)
    return record
