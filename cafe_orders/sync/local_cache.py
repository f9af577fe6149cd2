"""
Local Order Cache

This installation's own copy of the orders it has placed, kept alongside
the shared feed so "My Orders" still has something to show while the
feed is unreachable or lagging behind a form submission.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from cafe_orders.core.config import get_settings
from cafe_orders.core.files import JsonDocument, Unchanged
from cafe_orders.models import Order

logger = logging.getLogger(__name__)


class LocalOrderCache:
    def __init__(self, path: Optional[Path] = None, lock_timeout: Optional[float] = None):
        settings = get_settings()
        self.document = JsonDocument(
            path or settings.local_cache_path,
            lock_timeout if lock_timeout is not None else settings.file_lock_timeout,
        )

    def load(self) -> list[Order]:
        return [Order.model_validate(item) for item in self.document.read()]

    def append(self, order: Order) -> None:
        self.document.modify(lambda items: items.append(order.to_wire()))
        logger.debug(f"Cached order {order.id} locally")

    def update(self, order: Order) -> bool:
        """Replace the cached copy of ``order`` in place. False if it was never cached."""

        def replace(items: list[dict[str, Any]]) -> Any:
            for index, item in enumerate(items):
                if item.get("id") == order.id:
                    items[index] = order.to_wire()
                    return True
            return Unchanged(False)

        return self.document.modify(replace)

    def list_by_customer(self, customer_id: str) -> list[Order]:
        return [o for o in self.load() if o.customer_id == customer_id]
