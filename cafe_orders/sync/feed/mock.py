"""
Mock Feed Client Implementation

In-memory stand-in for the spreadsheet feed. Used in development mode
(ENV_MODE=development) and in tests to:
    - Run the feed-backed order store without a spreadsheet
    - Exercise reconciliation against a controllable feed
    - Simulate slow or failing transports

Behavior:
    - Rows are stored exactly as the form would receive them (text values)
    - Appending a row marked Latest clears the marker on older rows of the
      same id, as the sheet's writer script does
    - ``failure_rate`` makes calls raise TransportError at random

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import random
from typing import Any, Optional

from cafe_orders.core.config import get_settings
from cafe_orders.core.exceptions import TransportError
from cafe_orders.sync.feed.base import BaseFeedClient
from cafe_orders.sync.gviz import GvizTable, format_feed_timestamp
from cafe_orders.sync.reconcile import FEED_COLUMNS, LATEST_MARKER

logger = logging.getLogger(__name__)


MENU_COLUMNS = ["id", "name", "price", "description", "temperature"]
TOPPING_COLUMNS = ["id", "name", "price"]

DEFAULT_MENU = [
    ["1", "Latte", 4.5, "Espresso with steamed milk", "warm"],
    ["2", "Cappuccino", 4.0, "Espresso, steamed milk and foam", "warm"],
    ["3", "Iced Americano", "$3.50", "Espresso over ice and water", "iced"],
    ["4", "Matcha Latte", 5.0, "Stone-ground matcha with milk", "warm"],
    ["5", "Cold Brew", 4.25, "Steeped for 18 hours", "iced"],
]

DEFAULT_TOPPINGS = [
    ["1", "Oat Milk", 0.5],
    ["2", "Vanilla Syrup", 0.5],
    ["3", "Caramel Drizzle", 0.75],
    ["4", "Extra Shot", 1.0],
    ["5", "Whipped Cream", 0.5],
]


def _as_cell(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ", ".join(value)
    if hasattr(value, "isoformat"):
        return format_feed_timestamp(value)
    return value


class MockFeedClient(BaseFeedClient):
    """
    Mock implementation of the feed client.

    Attributes:
        failure_rate: Probability that a call raises TransportError (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds

    Example:
        >>> client = MockFeedClient()
        >>> await client.append_row({"id": "o1", "customerName": "Ana", ...})
        >>> len(await client.fetch_records())
        1
    """

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        rows: Optional[list[dict[str, Any]]] = None,
        maintain_marker: bool = True,
    ):
        """
        Initialize the mock feed.

        Args:
            failure_rate: Probability of a simulated transport failure
            min_latency: Minimum response time in seconds
            max_latency: Maximum response time in seconds
            rows: Pre-existing order rows (raw records, kept as given)
            maintain_marker: Clear older Latest markers on append
        """
        settings = get_settings()

        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.maintain_marker = maintain_marker
        self.orders_tab = settings.sheet_orders_tab
        self.rows: list[dict[str, Any]] = [dict(r) for r in (rows or [])]
        self.tables: dict[str, GvizTable] = {
            settings.sheet_menu_tab: GvizTable(MENU_COLUMNS, [list(r) for r in DEFAULT_MENU]),
            settings.sheet_toppings_tab: GvizTable(TOPPING_COLUMNS, [list(r) for r in DEFAULT_TOPPINGS]),
        }
        self.appends = 0

        logger.info(f"MockFeedClient initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    async def _simulate_network(self, operation: str) -> None:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))
        if self.failure_rate > 0 and random.random() < self.failure_rate:
            logger.warning(f"Mock feed: simulated failure during {operation}")
            raise TransportError(f"Simulated feed failure during {operation}")

    async def fetch_table(self, sheet: str) -> GvizTable:
        await self._simulate_network(f"read {sheet}")

        if sheet == self.orders_tab:
            return GvizTable(
                columns=list(FEED_COLUMNS),
                rows=[[row.get(c) for c in FEED_COLUMNS] for row in self.rows],
            )

        table = self.tables.get(sheet)
        if table is None:
            raise TransportError(f"Unknown sheet {sheet}")
        return GvizTable(list(table.columns), [list(r) for r in table.rows])

    async def fetch_records(self) -> list[dict[str, Any]]:
        await self._simulate_network("read orders")
        return [dict(row) for row in self.rows]

    async def append_row(self, values: dict[str, Any]) -> None:
        await self._simulate_network(f"append {values.get('id')}")

        row = {column: _as_cell(value) for column, value in values.items() if value is not None}

        if self.maintain_marker and str(row.get("current", "")).lower() == LATEST_MARKER.lower():
            for existing in self.rows:
                if existing.get("id") == row.get("id"):
                    existing["current"] = None

        self.rows.append(row)
        self.appends += 1
        logger.debug(f"Mock feed: appended row {len(self.rows)} for order {row.get('id')}")

    async def health_check(self) -> bool:
        """Mock feed is always healthy."""
        return True
