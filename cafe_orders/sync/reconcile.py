"""
Feed Reconciliation

The order feed is append-only: every creation, status change and feedback
submission adds a full row, so one order id appears many times. This
module folds those rows back into one Order per id.

Latest-row selection:
    1. If every row of an id carries an integer ``revision``, the highest
       revision wins (two rows with the same highest revision is an error).
    2. Otherwise exactly one row must carry the ``Latest`` marker in the
       ``current`` column. Zero or several marked rows is an error.

Errors are collected for the whole feed and raised together as a
FeedIntegrityError; nothing is guessed.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from cafe_orders.core.exceptions import FeedIntegrityError, TransportError
from cafe_orders.models import Order, OrderStatus
from cafe_orders.sync.gviz import cell_text, parse_feed_timestamp

logger = logging.getLogger(__name__)

LATEST_MARKER = "Latest"

# Columns every row must fill in to be considered at all
REQUIRED_COLUMNS = ("id", "customerName", "drinkName")

FEED_COLUMNS = (
    "id",
    "customerId",
    "customerName",
    "drinkName",
    "seatingLocation",
    "specialInstructions",
    "toppings",
    "orderStatus",
    "timestamp",
    "rating",
    "feedbackComment",
    "feedbackTimestamp",
    "revision",
    "current",
)


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else None


def _normalize_label(label: str) -> str:
    return label.replace(" ", "").replace("_", "").lower()


def map_columns(record: dict[str, Any]) -> dict[str, Any]:
    """
    Re-key a raw feed record by canonical column name.

    Exact label matches win over case/space-insensitive ones, so the form's
    own "Timestamp" column never shadows our "timestamp" column.
    """
    mapped: dict[str, Any] = {}
    loose = {_normalize_label(k): v for k, v in record.items()}
    for column in FEED_COLUMNS:
        if column in record:
            mapped[column] = record[column]
        elif _normalize_label(column) in loose:
            mapped[column] = loose[_normalize_label(column)]
    return mapped


@dataclass
class FeedRow:
    """One row of the order feed, in append order."""
    values: dict[str, Any]
    position: int

    @property
    def order_id(self) -> Optional[str]:
        return cell_text(self.values.get("id"))

    @property
    def marker(self) -> Optional[str]:
        return cell_text(self.values.get("current"))

    @property
    def is_latest(self) -> bool:
        return (self.marker or "").lower() == LATEST_MARKER.lower()

    @property
    def revision(self) -> Optional[int]:
        return _as_int(self.values.get("revision"))

    def missing_columns(self) -> list[str]:
        return [c for c in REQUIRED_COLUMNS if not cell_text(self.values.get(c))]

    def _status(self) -> OrderStatus:
        raw = cell_text(self.values.get("orderStatus")) or OrderStatus.NEW.value
        try:
            return OrderStatus(raw)
        except ValueError as e:
            raise TransportError(f"Unknown order status in feed row {self.position}", detail=raw) from e

    def to_order(self) -> Order:
        """
        Build the Order this row describes.

        Raises:
            TransportError: If a timestamp cannot be parsed
        """
        v = self.values
        feedback_ts = v.get("feedbackTimestamp")

        return Order(
            id=self.order_id,
            customer_id=cell_text(v.get("customerId")) or "",
            customer_name=cell_text(v.get("customerName")),
            drink_name=cell_text(v.get("drinkName")),
            seating_location=cell_text(v.get("seatingLocation")) or "",
            special_instructions=cell_text(v.get("specialInstructions")),
            toppings=cell_text(v.get("toppings")),
            order_status=self._status(),
            timestamp=parse_feed_timestamp(v.get("timestamp")),
            rating=_as_int(v.get("rating")),
            feedback_comment=cell_text(v.get("feedbackComment")),
            feedback_timestamp=parse_feed_timestamp(feedback_ts) if cell_text(feedback_ts) else None,
            current=self.marker,
        )


def parse_rows(records: Iterable[dict[str, Any]]) -> list[FeedRow]:
    """Turn raw records into FeedRows, dropping rows without id/customer/drink."""
    rows = []
    for position, record in enumerate(records):
        row = FeedRow(values=map_columns(record), position=position)
        missing = row.missing_columns()
        if missing:
            logger.warning(f"Skipping feed row {position}: missing {', '.join(missing)}")
            continue
        rows.append(row)
    return rows


def _pick_latest(order_id: str, group: list[FeedRow]) -> tuple[Optional[FeedRow], Optional[str]]:
    """Return (row, None) or (None, problem description)."""
    revisions = [row.revision for row in group]
    if all(r is not None for r in revisions):
        top = max(revisions)
        winners = [row for row in group if row.revision == top]
        if len(winners) != 1:
            return None, f"{len(winners)} rows share revision {top}"
        return winners[0], None

    marked = [row for row in group if row.is_latest]
    if not marked:
        return None, f"no row marked {LATEST_MARKER} among {len(group)}"
    if len(marked) > 1:
        return None, f"{len(marked)} rows marked {LATEST_MARKER}"
    return marked[0], None


def select_latest(rows: Iterable[FeedRow]) -> list[FeedRow]:
    """
    Pick the current row for each order id, in first-appearance order.

    Raises:
        FeedIntegrityError: If any id has no single latest row
    """
    groups: dict[str, list[FeedRow]] = {}
    for row in rows:
        groups.setdefault(row.order_id, []).append(row)

    selected = []
    problems: dict[str, str] = {}
    for order_id, group in groups.items():
        row, problem = _pick_latest(order_id, group)
        if problem:
            problems[order_id] = problem
        else:
            selected.append(row)

    if problems:
        logger.error(f"Feed integrity problems: {problems}")
        raise FeedIntegrityError(problems)

    return selected


def reconcile(records: Iterable[dict[str, Any]]) -> list[Order]:
    """Full pipeline: raw feed records -> one latest Order per id."""
    rows = parse_rows(records)
    latest = select_latest(rows)
    logger.debug(f"Reconciled {len(rows)} feed rows into {len(latest)} orders")
    return [row.to_order() for row in latest]

