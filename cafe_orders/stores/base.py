"""
Order Store Abstract Base Class

Defines the persistence boundary for orders. Every backend (JSON file,
SQL database, spreadsheet feed) inherits from this class and only
implements the storage primitives; the order operations themselves
(validation, lifecycle checks, de-duplication) live here so they behave
identically whichever backend is active.

Design Pattern: Template Method + Strategy
    - Operations: create, list_all, list_by_customer, get, update_status,
      attach_feedback, stats
    - Primitives: _insert, _fetch_all, _apply

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Optional

from cafe_orders.core.exceptions import NotFoundError, ValidationError
from cafe_orders.models import Actor, Order, OrderDraft, OrderStats, OrderStatus, utc_now
from cafe_orders.services import lifecycle
from cafe_orders.services.single_flight import SingleFlight

logger = logging.getLogger(__name__)

OrderChange = Callable[[Order], Order]


class BaseOrderStore(ABC):
    """
    Abstract base class for order stores.

    Writes are independent: there is no transaction spanning two calls, and
    two callers deciding from the same stale read resolve last-write-wins.
    Identical concurrent status updates are collapsed into one write.

    Example:
        >>> store = get_order_store()
        >>> order = await store.create(draft, customer_id="cust_42")
        >>> order = await store.update_status(order.id, OrderStatus.BREWING)
    """

    def __init__(self) -> None:
        self._flight = SingleFlight()

    # =========================================================================
    # STORAGE PRIMITIVES
    # =========================================================================

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the storage backend.

        Returns:
            str: Backend name (e.g., "json", "database", "sheet")
        """
        pass

    @abstractmethod
    async def _insert(self, order: Order) -> None:
        """Persist a brand-new order."""
        pass

    @abstractmethod
    async def _fetch_all(self) -> list[Order]:
        """Return the current state of every order."""
        pass

    @abstractmethod
    async def _apply(self, order_id: str, change: OrderChange) -> Order:
        """
        Load one order, apply ``change`` and persist the result.

        ``change`` returns its argument unchanged when there is nothing to
        write; implementations must then skip the write.

        Raises:
            NotFoundError: If no order has this id
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check backend connectivity."""
        pass

    async def _fetch(self, order_id: str) -> Optional[Order]:
        for order in await self._fetch_all():
            if order.id == order_id:
                return order
        return None

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def create(self, draft: OrderDraft, customer_id: str) -> Order:
        """
        Place a new order.

        Raises:
            ValidationError: If drinkName, customerName or seatingLocation is missing
        """
        missing = draft.missing_fields()
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}", missing)
        if not customer_id:
            raise ValidationError("Missing customer identity", ["customerId"])

        order = Order(
            id=str(uuid.uuid4()),
            customer_id=customer_id,
            customer_name=draft.customer_name,
            drink_name=draft.drink_name,
            seating_location=draft.seating_location,
            special_instructions=draft.special_instructions,
            toppings=list(draft.toppings),
            order_status=OrderStatus.NEW,
            timestamp=utc_now(),
        )
        await self._insert(order)

        logger.info(f"Order {order.id} created: {order.drink_name} for {order.customer_name}")
        return order

    async def list_all(self) -> list[Order]:
        return await self._fetch_all()

    async def list_by_customer(self, customer_id: str) -> list[Order]:
        """Orders placed under ``customer_id``, in no guaranteed order."""
        return [o for o in await self.list_all() if o.customer_id == customer_id]

    async def list_pending(self, customer_id: str) -> list[Order]:
        """
        This installation's locally cached view of a customer's orders.

        Only the feed backend keeps one; server-authoritative stores have
        nothing pending and return an empty list.
        """
        return []

    async def get(self, order_id: str) -> Order:
        order = await self._fetch(order_id)
        if order is None:
            raise NotFoundError(order_id)
        return order

    async def update_status(
        self,
        order_id: str,
        new_status: OrderStatus,
        actor: Actor = Actor.STAFF,
    ) -> Order:
        """
        Move an order to ``new_status``.

        Raises:
            NotFoundError: If the order does not exist
            InvalidStateError: If the lifecycle forbids the change
        """
        new_status = OrderStatus(new_status)
        key = (order_id, new_status, actor)
        return await self._flight.run(
            key,
            lambda: self._apply(
                order_id,
                lambda order: lifecycle.transition(order, new_status, actor),
            ),
        )

    async def attach_feedback(self, order_id: str, rating: int, comment: Optional[str] = None) -> Order:
        """
        Attach a rating and comment to a delivered order, once.

        Raises:
            NotFoundError: If the order does not exist
            ValidationError: If the rating is not an integer in [1, 5]
            InvalidStateError: If the order is not Delivered or already rated
        """
        lifecycle.validate_rating(rating)
        updated = await self._apply(
            order_id,
            lambda order: lifecycle.attach_feedback(order, rating, comment),
        )
        logger.info(f"Feedback attached to order {order_id}: {rating}/5")
        return updated

    async def stats(self) -> OrderStats:
        return OrderStats.from_orders(await self.list_all())

    async def close(self) -> None:
        """Release backend resources (engines, clients)."""
        return None
