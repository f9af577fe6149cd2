"""
Spreadsheet (gviz) Serialization

The spreadsheet's query endpoint answers with JSON wrapped in a JavaScript
call and encodes dates as ``Date(2024,0,15,9,5,0)`` with a zero-based
month. Everything that knows about that format lives here; the rest of
the code only sees plain records and timezone-aware datetimes.

Example payload:
    /*O_o*/
    google.visualization.Query.setResponse({"status":"ok","table":{
        "cols":[{"id":"A","label":"id","type":"string"}, ...],
        "rows":[{"c":[{"v":"o1"}, null, ...]}]}});
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from cafe_orders.core.exceptions import TransportError
from cafe_orders.models import ensure_utc

_WRAPPER_RE = re.compile(r"setResponse\((?P<body>.*)\)\s*;?\s*$", re.DOTALL)
_GVIZ_DATE_RE = re.compile(r"^Date\((?P<parts>\d+(?:\s*,\s*\d+){2,6})\)$")
_DISPLAY_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
)


@dataclass
class GvizTable:
    """Column labels plus raw cell values, row by row."""
    columns: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)

    def records(self) -> list[dict[str, Any]]:
        """Rows as dicts keyed by column label (unlabelled columns are dropped)."""
        return [
            {label: value for label, value in zip(self.columns, row) if label}
            for row in self.rows
        ]


def unwrap_response(text: str) -> dict[str, Any]:
    """
    Strip the ``setResponse(...)`` wrapper and decode the JSON inside.

    Raises:
        TransportError: If the payload is not a gviz response or reports an error
    """
    match = _WRAPPER_RE.search(text or "")
    body = match.group("body") if match else text
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as e:
        raise TransportError("Feed returned an unreadable payload", detail=str(e)) from e

    if not isinstance(payload, dict):
        raise TransportError("Feed returned an unexpected payload")

    if payload.get("status") == "error":
        errors = payload.get("errors") or [{}]
        detail = errors[0].get("detailed_message") or errors[0].get("message")
        raise TransportError("Feed query failed", detail=detail)

    return payload


def parse_table(text: str) -> GvizTable:
    """Parse a full gviz response into a GvizTable."""
    payload = unwrap_response(text)
    table = payload.get("table") or {}

    columns = [
        (col.get("label") or "").strip()
        for col in table.get("cols", [])
    ]
    rows = []
    for row in table.get("rows", []):
        cells = row.get("c") or []
        values = [cell.get("v") if cell else None for cell in cells]
        # Trailing empty cells are omitted by the endpoint
        values += [None] * (len(columns) - len(values))
        rows.append(values)

    return GvizTable(columns=columns, rows=rows)


def parse_feed_timestamp(value: Any) -> datetime:
    """
    Normalize a timestamp read from the feed.

    Accepts gviz ``Date(y,m0,d[,h,mi,s[,ms]])``, ISO-8601, and the sheet's
    ``M/D/YYYY H:MM:SS`` display format. Naive values are taken as UTC.

    Raises:
        TransportError: If the value cannot be understood
    """
    if isinstance(value, datetime):
        return ensure_utc(value)

    if not isinstance(value, str) or not value.strip():
        raise TransportError("Feed row has no usable timestamp", detail=repr(value))

    text = value.strip()

    match = _GVIZ_DATE_RE.match(text)
    if match:
        parts = [int(p) for p in match.group("parts").split(",")]
        year, month0, day = parts[:3]
        hour, minute, second, millis = (parts[3:] + [0, 0, 0, 0])[:4]
        try:
            return datetime(
                year, month0 + 1, day, hour, minute, second, millis * 1000,
                tzinfo=timezone.utc,
            )
        except ValueError as e:
            raise TransportError("Feed timestamp out of range", detail=text) from e

    try:
        return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in _DISPLAY_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    raise TransportError("Unparseable feed timestamp", detail=text)


def format_feed_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Timestamps are written to the feed as ISO-8601 UTC."""
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def parse_price(value: Any) -> float:
    """Menu prices arrive as numbers or as strings like ``"$4.50"``."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace("$", "").replace(",", "").strip() or 0)
    except ValueError:
        return 0.0


def cell_text(value: Any) -> Optional[str]:
    """Render a cell as text; whole-number floats lose their ``.0``."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None
