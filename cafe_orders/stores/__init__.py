"""
Order Store Factory

Provides a single entry point for obtaining the order store.
The backend is chosen by STORAGE_BACKEND.

Usage:
    from cafe_orders.stores import get_order_store

    store = get_order_store()
    order = await store.create(draft, customer_id)

Backend Switching:
    - STORAGE_BACKEND=json → JsonFileOrderStore (data/orders.json)
    - STORAGE_BACKEND=database → SqlOrderStore (DATABASE_URL)
    - STORAGE_BACKEND=sheet → FeedOrderStore (spreadsheet feed + local cache)

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from cafe_orders.core.config import StorageBackend, get_settings
from cafe_orders.stores.base import BaseOrderStore
from cafe_orders.stores.feed import FeedOrderStore
from cafe_orders.stores.json_file import JsonFileOrderStore
from cafe_orders.stores.sql import SqlOrderStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_store() -> BaseOrderStore:
    """
    Get the configured order store instance.

    Cached so concurrent requests share one store (and its in-flight
    de-duplication).
    """
    settings = get_settings()

    if settings.storage_backend == StorageBackend.DATABASE:
        logger.info("Order Store: Using SqlOrderStore")
        return SqlOrderStore()

    if settings.storage_backend == StorageBackend.SHEET:
        logger.info("Order Store: Using FeedOrderStore")
        return FeedOrderStore()

    logger.info("Order Store: Using JsonFileOrderStore")
    return JsonFileOrderStore()


def reset_order_store() -> None:
    """Clear the cached store instance."""
    get_order_store.cache_clear()
    logger.debug("Order store cache cleared")


__all__ = [
    "get_order_store",
    "reset_order_store",
    "BaseOrderStore",
    "FeedOrderStore",
    "JsonFileOrderStore",
    "SqlOrderStore",
]
