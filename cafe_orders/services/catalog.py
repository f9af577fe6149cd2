"""
Menu Catalog Service

Drinks and toppings are reference data: read from the spreadsheet's Menu
and Toppings tabs when the feed backend is active, otherwise from a static
``menu.json`` in the data directory. Orders copy topping names and never
point back here.

Both reads degrade to an empty list when the source is unavailable, so a
missing menu never takes the ordering page down.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from cafe_orders.core.config import StorageBackend, get_settings
from cafe_orders.core.exceptions import TransportError
from cafe_orders.models import DrinkItem, Topping
from cafe_orders.sync.feed import BaseFeedClient, get_feed_client
from cafe_orders.sync.gviz import cell_text, parse_price

logger = logging.getLogger(__name__)


def _cell(row: list[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def drink_from_row(row: list[Any]) -> Optional[DrinkItem]:
    """Menu tab columns: id, name, price, description, temperature."""
    drink_id, name = cell_text(_cell(row, 0)), cell_text(_cell(row, 1))
    if not drink_id or not name:
        return None
    return DrinkItem(
        id=drink_id,
        name=name,
        price=parse_price(_cell(row, 2)),
        description=cell_text(_cell(row, 3)) or "",
        temperature=cell_text(_cell(row, 4)),
    )


def topping_from_row(row: list[Any]) -> Optional[Topping]:
    """Toppings tab columns: id, name, price."""
    topping_id, name = cell_text(_cell(row, 0)), cell_text(_cell(row, 1))
    if not topping_id or not name:
        return None
    return Topping(id=topping_id, name=name, price=parse_price(_cell(row, 2)))


class CatalogService:
    """
    Read-only access to the drink menu and topping list.

    Example:
        >>> catalog = get_catalog_service()
        >>> drinks = await catalog.list_drinks()
    """

    def __init__(self, feed: Optional[BaseFeedClient] = None, menu_path: Optional[Path] = None):
        settings = get_settings()
        self.feed = feed
        self.menu_path = Path(menu_path or settings.menu_path)
        self.menu_tab = settings.sheet_menu_tab
        self.toppings_tab = settings.sheet_toppings_tab

    @property
    def source(self) -> str:
        return "feed" if self.feed is not None else "file"

    async def list_drinks(self) -> list[DrinkItem]:
        if self.feed is not None:
            rows = await self._feed_rows(self.menu_tab)
            return [d for d in (drink_from_row(r) for r in rows) if d]
        return self._file_items("drinks", DrinkItem)

    async def list_toppings(self) -> list[Topping]:
        if self.feed is not None:
            rows = await self._feed_rows(self.toppings_tab)
            return [t for t in (topping_from_row(r) for r in rows) if t]
        return self._file_items("toppings", Topping)

    async def _feed_rows(self, sheet: str) -> list[list[Any]]:
        try:
            table = await self.feed.fetch_table(sheet)
        except TransportError as e:
            logger.error(f"Error fetching {sheet} tab: {e.message}")
            return []
        return table.rows

    def _file_items(self, key: str, model):
        if not self.menu_path.exists():
            logger.warning(f"Menu file {self.menu_path} not found, serving empty {key}")
            return []
        try:
            data = json.loads(self.menu_path.read_text(encoding="utf-8"))
            return [model.model_validate(item) for item in data.get(key, [])]
        except (OSError, json.JSONDecodeError, AttributeError, PydanticValidationError) as e:
            logger.error(f"Error reading {key} from {self.menu_path}: {e}")
            return []


@lru_cache()
def get_catalog_service() -> CatalogService:
    settings = get_settings()
    if settings.storage_backend == StorageBackend.SHEET:
        return CatalogService(feed=get_feed_client())
    return CatalogService()


def reset_catalog_service() -> None:
    get_catalog_service.cache_clear()
