"""
Order Poller

The café never pushes updates: the customer view re-fetches every 10
seconds and the barista board every 30. OrderPoller owns that timer for
one view and is stopped when the view goes away.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from cafe_orders.core.config import get_settings
from cafe_orders.core.exceptions import FeedIntegrityError, TransportError
from cafe_orders.models import Order

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[list[Order]]]
UpdateFn = Callable[[list[Order]], Optional[Awaitable[None]]]


class OrderPoller:
    """
    Re-fetch an order list on a fixed interval.

    Attributes:
        interval: Seconds between fetches
        last_known: Result of the last successful fetch
        is_stale: True when the last fetch failed and last_known was kept
    """

    def __init__(
        self,
        fetch: FetchFn,
        interval: float,
        on_update: Optional[UpdateFn] = None,
        name: str = "orders",
    ):
        self.fetch = fetch
        self.interval = interval
        self.on_update = on_update
        self.name = name
        self.last_known: list[Order] = []
        self.is_stale = False
        self.polls = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> list[Order]:
        """Fetch now. Transport failures keep the last-known list."""
        self.polls += 1
        try:
            orders = await self.fetch()
        except TransportError as e:
            self.is_stale = True
            logger.warning(f"Poller {self.name}: fetch failed, keeping last-known list ({e.message})")
            return self.last_known
        except FeedIntegrityError as e:
            self.is_stale = True
            logger.error(f"Poller {self.name}: feed is inconsistent, keeping last-known list ({e.detail})")
            return self.last_known

        self.last_known = orders
        self.is_stale = False

        if self.on_update is not None:
            result = self.on_update(orders)
            if asyncio.iscoroutine(result):
                await result
        return orders

    async def start(self) -> None:
        """Start polling in the background (first fetch happens immediately)."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Poller {self.name} started (every {self.interval}s)")

    async def stop(self) -> None:
        """Stop the timer. An in-flight fetch is cancelled with it."""
        if not self.is_running:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Poller {self.name} stopped")

    async def _loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                self.is_stale = True
                logger.exception(f"Poller {self.name}: unexpected error, will retry in {self.interval}s")
            await asyncio.sleep(self.interval)


def customer_poller(store, customer_id: str, on_update: Optional[UpdateFn] = None) -> OrderPoller:
    """Poller for a customer's own orders."""
    return OrderPoller(
        fetch=lambda: store.list_by_customer(customer_id),
        interval=get_settings().customer_poll_seconds,
        on_update=on_update,
        name=f"customer:{customer_id}",
    )


def staff_poller(store, on_update: Optional[UpdateFn] = None) -> OrderPoller:
    """Poller for the barista board (every order)."""
    return OrderPoller(
        fetch=store.list_all,
        interval=get_settings().staff_poll_seconds,
        on_update=on_update,
        name="staff",
    )
