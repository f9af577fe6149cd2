"""
Spreadsheet Feed Client

Production feed: reads tabs through the spreadsheet's gviz query endpoint
and appends order rows by submitting the linked Google Form. Used when
STORAGE_BACKEND=sheet and ENV_MODE is production or staging.

Requirements:
    - SHEET_ID: spreadsheet shared as "anyone with the link can view"
    - FORM_ID: form whose responses land in the order tab
    - FORM_FIELD_MAP: order column -> ``entry.NNN`` id of the form question

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import time
from typing import Any, Optional

import httpx

from cafe_orders.core.config import get_settings
from cafe_orders.core.exceptions import TransportError
from cafe_orders.sync.feed.base import BaseFeedClient
from cafe_orders.sync.gviz import GvizTable, format_feed_timestamp, parse_table

logger = logging.getLogger(__name__)

GVIZ_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq"
FORM_URL = "https://docs.google.com/forms/d/e/{form_id}/formResponse"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store",
    "Pragma": "no-cache",
}


class SheetFeedClient(BaseFeedClient):
    """
    Real spreadsheet feed over HTTP.

    Every read bypasses caches (no-cache headers plus a changing query
    parameter); the feed is expected to hold the complete history.

    Example:
        >>> client = SheetFeedClient()
        >>> table = await client.fetch_table("Orders")
        >>> print(table.columns)
        ['Timestamp', 'id', 'customerId', ...]
    """

    def __init__(
        self,
        sheet_id: Optional[str] = None,
        form_id: Optional[str] = None,
        field_map: Optional[dict[str, str]] = None,
        orders_tab: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            sheet_id: Spreadsheet id (defaults to SHEET_ID)
            form_id: Form id (defaults to FORM_ID)
            field_map: Column -> form entry id (defaults to FORM_FIELD_MAP)
            orders_tab: Tab holding the order feed
            timeout: HTTP timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)

        Raises:
            ValueError: If SHEET_ID or FORM_ID is not configured
        """
        settings = get_settings()

        self.sheet_id = sheet_id or settings.sheet_id
        self.form_id = form_id or settings.form_id
        if not self.sheet_id or not self.form_id:
            raise ValueError(
                "SHEET_ID and FORM_ID are required for the spreadsheet feed. "
                "Set them in your .env file or environment variables."
            )

        self.field_map = field_map or settings.form_field_map
        self.orders_tab = orders_tab or settings.sheet_orders_tab
        self.timeout = timeout if timeout is not None else settings.feed_timeout_seconds
        self._transport = transport

        logger.info(f"SheetFeedClient initialized (sheet {self.sheet_id})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "sheet"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def fetch_table(self, sheet: str) -> GvizTable:
        """Read one tab through the gviz endpoint."""
        url = GVIZ_URL.format(sheet_id=self.sheet_id)
        params = {
            "tqx": "out:json",
            "sheet": sheet,
            "_": str(int(time.time() * 1000)),
        }

        logger.debug(f"Sheet: fetching tab {sheet}")

        try:
            async with self._client() as client:
                response = await client.get(url, params=params, headers=NO_CACHE_HEADERS)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Sheet: {sheet} returned HTTP {e.response.status_code}")
            raise TransportError(
                f"Feed read failed with HTTP {e.response.status_code}", detail=sheet
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Sheet: could not reach feed for {sheet}: {e}")
            raise TransportError("Feed unreachable", detail=str(e)) from e

        return parse_table(response.text)

    async def fetch_records(self) -> list[dict[str, Any]]:
        table = await self.fetch_table(self.orders_tab)
        return table.records()

    def _form_params(self, values: dict[str, Any]) -> dict[str, str]:
        params = {}
        for column, value in values.items():
            entry = self.field_map.get(column)
            if entry is None or value is None:
                continue
            if isinstance(value, (list, tuple)):
                value = ", ".join(value)
            elif hasattr(value, "isoformat"):
                value = format_feed_timestamp(value)
            params[entry] = str(value)
        return params

    async def append_row(self, values: dict[str, Any]) -> None:
        """Submit one row through the form endpoint."""
        url = FORM_URL.format(form_id=self.form_id)
        params = self._form_params(values)

        try:
            async with self._client() as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Sheet: form rejected row for order {values.get('id')} "
                f"(HTTP {e.response.status_code})"
            )
            raise TransportError(
                f"Form submission failed with HTTP {e.response.status_code}",
                detail=values.get("id"),
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Sheet: could not submit row for order {values.get('id')}: {e}")
            raise TransportError("Form endpoint unreachable", detail=str(e)) from e

        logger.info(f"Sheet: appended row for order {values.get('id')} ({values.get('orderStatus')})")

    async def health_check(self) -> bool:
        """Check that the order tab can be read."""
        try:
            await self.fetch_table(self.orders_tab)
            return True
        except TransportError as e:
            logger.warning(f"Sheet health check failed: {e.message}")
            return False
