"""
Domain Models

Pydantic models for the café order domain. Field names are snake_case in
Python and camelCase on the wire (``drinkName``, ``orderStatus``...), the
format the browser client and the spreadsheet feed both speak.

Author: Khalil Bannouri
Version: 1.0.0
"""

import enum
from datetime import datetime, timezone
from typing import ClassVar, Iterable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    NEW = "New"
    BREWING = "Brewing"
    ON_HOLD = "On Hold"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    @classmethod
    def _missing_(cls, value):
        # "on hold", "OnHold", "on_hold", "BREWING" ...
        if isinstance(value, str):
            key = value.replace(" ", "").replace("_", "").replace("-", "").lower()
            for member in cls:
                if member.value.replace(" ", "").lower() == key:
                    return member
        return None


class Actor(str, enum.Enum):
    """Who is asking for a status change."""
    STAFF = "staff"
    CUSTOMER = "customer"


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Convert to a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# ORDERS
# =============================================================================

class Order(CamelModel):
    """
    A single customer request for one drink.

    Tracks the lifecycle from placement to delivery or cancellation.
    ``timestamp`` is the last-modified time: every status change rewrites it.
    """
    id: str
    customer_id: str
    customer_name: str
    drink_name: str
    seating_location: str
    special_instructions: Optional[str] = None
    toppings: list[str] = Field(default_factory=list)
    order_status: OrderStatus = OrderStatus.NEW
    timestamp: datetime

    # Feedback (only once Delivered)
    rating: Optional[int] = None
    feedback_comment: Optional[str] = None
    feedback_timestamp: Optional[datetime] = None

    # Revision marker of the feed row this order was read from
    current: Optional[str] = None

    @field_validator("timestamp", "feedback_timestamp")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return ensure_utc(v)

    @field_validator("toppings", mode="before")
    @classmethod
    def split_toppings(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return v

    @property
    def has_feedback(self) -> bool:
        return self.rating is not None or self.feedback_comment is not None

    def __repr__(self):
        return f"<Order {self.id} - {self.drink_name} - {self.customer_name} - {self.order_status.value}>"


class OrderDraft(CamelModel):
    """
    Creation payload sent by the customer.

    Every field is optional at parse time so that the store, not the
    transport, decides what is missing. Server-assigned fields sent by a
    client (id, orderStatus, timestamp, customerId) are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("drink_name", "customer_name", "seating_location")

    customer_name: Optional[str] = Field(None, max_length=100, examples=["Ana"])
    drink_name: Optional[str] = Field(None, max_length=100, examples=["Latte"])
    seating_location: Optional[str] = Field(None, max_length=100, examples=["Table 3"])
    special_instructions: Optional[str] = Field(None, max_length=500)
    toppings: list[str] = Field(default_factory=list, examples=[["Oat Milk", "Vanilla"]])

    @field_validator("customer_name", "drink_name", "seating_location", "special_instructions")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @field_validator("toppings", mode="before")
    @classmethod
    def clean_toppings(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [t.strip() for t in v if isinstance(t, str) and t.strip()]

    def missing_fields(self) -> list[str]:
        """Wire names of required fields that are absent or blank."""
        return [
            to_camel(name) for name in self.REQUIRED_FIELDS
            if getattr(self, name) is None
        ]


# =============================================================================
# CATALOG (reference data)
# =============================================================================

class Topping(CamelModel):
    """A topping the café offers. Orders copy its name, never reference it."""
    id: str
    name: str
    price: float = 0.0


class DrinkItem(CamelModel):
    """A drink on the menu."""
    id: str
    name: str
    price: float = 0.0
    description: str = ""
    temperature: Literal["warm", "iced"] = "warm"

    @field_validator("temperature", mode="before")
    @classmethod
    def normalize_temperature(cls, v):
        if v is None:
            return "warm"
        v = str(v).strip().lower()
        return v if v in ("warm", "iced") else "warm"


# =============================================================================
# AGGREGATES
# =============================================================================

class OrderStats(BaseModel):
    """Order counts for the barista dashboard."""
    total: int = 0
    new: int = 0
    brewing: int = 0
    completed: int = 0
    cancelled: int = 0

    @classmethod
    def from_orders(cls, orders: Iterable[Order]) -> "OrderStats":
        orders = list(orders)

        def count(status: OrderStatus) -> int:
            return sum(1 for o in orders if o.order_status == status)

        return cls(
            total=len(orders),
            new=count(OrderStatus.NEW),
            brewing=count(OrderStatus.BREWING),
            completed=count(OrderStatus.DELIVERED),
            cancelled=count(OrderStatus.CANCELLED),
        )


class FeedbackSummary(CamelModel):
    """Aggregate of the feedback left on delivered orders."""
    count: int = 0
    average_rating: Optional[float] = None
