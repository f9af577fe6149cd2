"""
Order Lifecycle

State machine governing which status changes are allowed, plus the
eligibility rules that hang off each status (cancellation, feedback).

    New      -> Brewing, On Hold, Cancelled
    Brewing  -> On Hold, Delivered, Cancelled
    On Hold  -> Brewing, Delivered, Cancelled
    Delivered, Cancelled: terminal

Staff may follow any edge above. Customers may only cancel, and only
while the order is not yet Delivered or Cancelled.

All functions are pure: they return new Order objects and never touch
storage.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from cafe_orders.core.exceptions import InvalidStateError, ValidationError
from cafe_orders.models import Actor, Order, OrderStatus, utc_now

logger = logging.getLogger(__name__)


TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.NEW: frozenset({OrderStatus.BREWING, OrderStatus.ON_HOLD, OrderStatus.CANCELLED}),
    OrderStatus.BREWING: frozenset({OrderStatus.ON_HOLD, OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.ON_HOLD: frozenset({OrderStatus.BREWING, OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

MIN_RATING = 1
MAX_RATING = 5

# "My Orders" ordering: open orders first, then finished ones
CUSTOMER_STATUS_PRIORITY = {
    OrderStatus.NEW: 0,
    OrderStatus.ON_HOLD: 1,
    OrderStatus.BREWING: 2,
    OrderStatus.DELIVERED: 3,
    OrderStatus.CANCELLED: 4,
}


# =============================================================================
# ELIGIBILITY
# =============================================================================

def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def allowed_transitions(status: OrderStatus, actor: Actor = Actor.STAFF) -> frozenset[OrderStatus]:
    """Statuses reachable from ``status`` for the given actor."""
    if actor == Actor.CUSTOMER:
        if is_terminal(status):
            return frozenset()
        return frozenset({OrderStatus.CANCELLED})
    return TRANSITIONS[status]


def can_cancel(order: Order) -> bool:
    """Whether the customer may still cancel this order."""
    return not is_terminal(order.order_status)


def can_leave_feedback(order: Order) -> bool:
    """Feedback is accepted once, on delivered orders only."""
    return order.order_status == OrderStatus.DELIVERED and not order.has_feedback


# =============================================================================
# TRANSITIONS
# =============================================================================

def transition(
    order: Order,
    new_status: OrderStatus,
    actor: Actor = Actor.STAFF,
    now: Optional[datetime] = None,
) -> Order:
    """
    Apply a status change.

    Args:
        order: Current state of the order
        new_status: Requested status
        actor: STAFF (barista board) or CUSTOMER (my orders)
        now: Transition time, defaults to the current UTC time

    Returns:
        A new Order with the status and timestamp updated. For staff, a
        request for the current status returns ``order`` itself unchanged.

    Raises:
        InvalidStateError: If the transition is not allowed
    """
    current = order.order_status

    if actor == Actor.STAFF and new_status == current:
        logger.debug(f"Order {order.id} already {current.value}, nothing to do")
        return order

    if new_status not in allowed_transitions(current, actor):
        if actor == Actor.CUSTOMER and new_status != OrderStatus.CANCELLED:
            raise InvalidStateError(
                f"Customers can only cancel orders, not set them to {new_status.value}"
            )
        raise InvalidStateError(
            f"Cannot move order {order.id} from {current.value} to {new_status.value}"
        )

    updated = order.model_copy(
        update={"order_status": new_status, "timestamp": now or utc_now()}
    )
    logger.info(f"Order {order.id}: {current.value} -> {new_status.value} ({actor.value})")
    return updated


def validate_rating(rating) -> int:
    """
    Check a feedback rating.

    Raises:
        ValidationError: Unless rating is an integer in [1, 5]
    """
    # bool is an int subclass; True is not a rating
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be a whole number from 1 to 5", ["rating"])
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}", ["rating"]
        )
    return rating


def attach_feedback(
    order: Order,
    rating: int,
    comment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Attach a one-time rating and comment to a delivered order.

    The order status is left untouched.

    Raises:
        ValidationError: If the rating is out of range
        InvalidStateError: If the order is not Delivered or already rated
    """
    validate_rating(rating)

    if order.order_status != OrderStatus.DELIVERED:
        raise InvalidStateError(
            f"Feedback is only accepted for delivered orders (order {order.id} is {order.order_status.value})"
        )
    if order.has_feedback:
        raise InvalidStateError(f"Feedback for order {order.id} was already submitted")

    comment = (comment or "").strip() or None
    return order.model_copy(
        update={
            "rating": rating,
            "feedback_comment": comment,
            "feedback_timestamp": now or utc_now(),
        }
    )


# =============================================================================
# VIEWS
# =============================================================================

def sort_for_customer(orders: Iterable[Order]) -> list[Order]:
    """Open orders first (New, On Hold, Brewing), newest first within a status."""
    by_time = sorted(orders, key=lambda o: o.timestamp, reverse=True)
    return sorted(by_time, key=lambda o: CUSTOMER_STATUS_PRIORITY[o.order_status])
