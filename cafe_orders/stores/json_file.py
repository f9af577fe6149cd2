"""
JSON File Order Store

Keeps every order as one element of a JSON array on local disk
(``data/orders.json`` by default). The default backend for development.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from cafe_orders.core.config import get_settings
from cafe_orders.core.exceptions import NotFoundError
from cafe_orders.core.files import JsonDocument, Unchanged
from cafe_orders.models import Order
from cafe_orders.stores.base import BaseOrderStore, OrderChange

logger = logging.getLogger(__name__)


class JsonFileOrderStore(BaseOrderStore):
    """
    Order store backed by a single JSON file.

    File access runs in a worker thread; the read-modify-write of a
    status change happens entirely under the file lock.
    """

    def __init__(self, path: Optional[Path] = None, lock_timeout: Optional[float] = None):
        super().__init__()
        settings = get_settings()
        self.document = JsonDocument(
            path or settings.orders_path,
            lock_timeout if lock_timeout is not None else settings.file_lock_timeout,
        )
        logger.info(f"JSON order store at {self.document.path}")

    @property
    def provider_name(self) -> str:
        return "json"

    async def _insert(self, order: Order) -> None:
        await asyncio.to_thread(self.document.modify, lambda items: items.append(order.to_wire()))

    async def _fetch_all(self) -> list[Order]:
        items = await asyncio.to_thread(self.document.read)
        return [Order.model_validate(item) for item in items]

    async def _apply(self, order_id: str, change: OrderChange) -> Order:
        def apply(items: list[dict[str, Any]]) -> Any:
            for index, item in enumerate(items):
                if item.get("id") == order_id:
                    order = Order.model_validate(item)
                    updated = change(order)
                    if updated is order:
                        return Unchanged(order)
                    items[index] = updated.to_wire()
                    return updated
            raise NotFoundError(order_id)

        return await asyncio.to_thread(self.document.modify, apply)

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(self.document.read)
            return True
        except Exception as e:
            logger.warning(f"JSON store health check failed: {e}")
            return False
