"""
Feed Client Factory

Provides a single entry point for obtaining a feed client instance.
Automatically selects Mock or the real spreadsheet based on ENV_MODE.

Usage:
    from cafe_orders.sync.feed import get_feed_client

    feed = get_feed_client()
    records = await feed.fetch_records()

Environment Switching:
    - ENV_MODE=development → MockFeedClient (in memory)
    - ENV_MODE=staging → SheetFeedClient (test spreadsheet)
    - ENV_MODE=production → SheetFeedClient (live spreadsheet)

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from cafe_orders.core.config import get_settings
from cafe_orders.sync.feed.base import BaseFeedClient
from cafe_orders.sync.feed.mock import MockFeedClient
from cafe_orders.sync.feed.sheet import SheetFeedClient

logger = logging.getLogger(__name__)


@lru_cache()
def get_feed_client() -> BaseFeedClient:
    """
    Get the configured feed client instance.

    The instance is cached so the in-memory mock keeps its rows for the
    lifetime of the process.

    Raises:
        ValueError: If a real feed is requested but SHEET_ID/FORM_ID are missing
    """
    settings = get_settings()

    if settings.use_real_feed:
        logger.info(f"Feed Client: Using SheetFeedClient ({settings.env_mode.value} mode)")
        return SheetFeedClient()

    logger.info("Feed Client: Using MockFeedClient (development mode)")
    return MockFeedClient(min_latency=0.05, max_latency=0.2)


def reset_feed_client() -> None:
    """Clear the cached feed client instance."""
    get_feed_client.cache_clear()
    logger.debug("Feed client cache cleared")


__all__ = [
    "get_feed_client",
    "reset_feed_client",
    "BaseFeedClient",
    "MockFeedClient",
    "SheetFeedClient",
]
