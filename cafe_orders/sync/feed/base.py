"""
Feed Client Abstract Base Class

Defines the interface contract for the spreadsheet feed. Both
MockFeedClient and SheetFeedClient implement it, so the feed-backed
order store and the menu catalog never know which one is active.

The feed supports exactly two operations:
    - read a whole tab (bulk export, never cached)
    - append one row to the order tab (no update, no delete)

Author: Khalil Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from typing import Any

from cafe_orders.sync.gviz import GvizTable


class BaseFeedClient(ABC):
    """
    Abstract base class for feed clients.

    Example:
        >>> client = get_feed_client()
        >>> records = await client.fetch_records()
        >>> await client.append_row({"id": "o1", "orderStatus": "New", ...})
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the feed provider.

        Returns:
            str: Provider name (e.g., "mock", "sheet")
        """
        pass

    @abstractmethod
    async def fetch_table(self, sheet: str) -> GvizTable:
        """
        Read every row of a tab.

        Raises:
            TransportError: If the feed cannot be read or decoded
        """
        pass

    @abstractmethod
    async def fetch_records(self) -> list[dict[str, Any]]:
        """
        Read every row of the order tab as dicts keyed by column label.

        Raises:
            TransportError: If the feed cannot be read or decoded
        """
        pass

    @abstractmethod
    async def append_row(self, values: dict[str, Any]) -> None:
        """
        Append one row to the order tab.

        Args:
            values: Column name -> value; None values are left blank

        Raises:
            TransportError: If the submission is not accepted
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check feed connectivity."""
        pass
