"""
Feed Order Store

Orders live in an append-only spreadsheet fed by a web form. Nothing is
ever edited in place: every change appends a complete new row carrying a
higher revision number and the "Latest" marker, and reads reconcile the
rows back into one current state per order.

Each write also lands in this installation's local cache so that "My
Orders" keeps showing it before the sheet catches up. Cache file access
runs in a worker thread, like the JSON store.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from typing import Any, Optional

from cafe_orders.core.exceptions import NotFoundError
from cafe_orders.models import Order
from cafe_orders.stores.base import BaseOrderStore, OrderChange
from cafe_orders.sync.feed import BaseFeedClient, get_feed_client
from cafe_orders.sync.local_cache import LocalOrderCache
from cafe_orders.sync.reconcile import LATEST_MARKER, parse_rows, reconcile, select_latest

logger = logging.getLogger(__name__)


def feed_row(order: Order, revision: int) -> dict[str, Any]:
    """Full feed row for ``order``, marked as the latest revision."""
    values = order.to_wire()
    values["toppings"] = list(order.toppings)
    values["revision"] = revision
    values["current"] = LATEST_MARKER
    return values


class FeedOrderStore(BaseOrderStore):
    """
    Order store on top of the append-only order feed.

    Example:
        >>> store = FeedOrderStore()
        >>> orders = await store.list_all()  # reconciled, one per id
    """

    def __init__(
        self,
        feed: Optional[BaseFeedClient] = None,
        cache: Optional[LocalOrderCache] = None,
    ):
        super().__init__()
        self.feed = feed or get_feed_client()
        self.cache = cache or LocalOrderCache()

    @property
    def provider_name(self) -> str:
        return "sheet"

    async def _insert(self, order: Order) -> None:
        await self.feed.append_row(feed_row(order, revision=1))
        await asyncio.to_thread(self.cache.append, order)

    async def _fetch_all(self) -> list[Order]:
        return reconcile(await self.feed.fetch_records())

    async def _apply(self, order_id: str, change: OrderChange) -> Order:
        # Only this order's rows are reconciled, so a broken group
        # elsewhere in the sheet does not block the write
        rows = [row for row in parse_rows(await self.feed.fetch_records()) if row.order_id == order_id]
        if not rows:
            raise NotFoundError(order_id)

        order = select_latest(rows)[0].to_order()
        updated = change(order)
        if updated is order:
            return order

        revision = max(row.revision or 0 for row in rows) + 1
        await self.feed.append_row(feed_row(updated, revision))
        logger.info(f"Appended revision {revision} for order {order_id}")

        if not await asyncio.to_thread(self.cache.update, updated):
            logger.debug(f"Order {order_id} not placed here, local cache unchanged")
        return updated

    async def list_pending(self, customer_id: str) -> list[Order]:
        return await asyncio.to_thread(self.cache.list_by_customer, customer_id)

    async def health_check(self) -> bool:
        return await self.feed.health_check()
