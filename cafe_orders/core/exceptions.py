"""
Error Taxonomy

Every failure the order core can report to a caller. The HTTP layer maps
each class to a status code (see ``cafe_orders.main``); read paths may
degrade on TransportError, write paths always surface it.
"""

from typing import Iterable, Optional


class CafeOrdersError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": False,
            "error": self.message,
            "detail": self.detail,
        }


class ValidationError(CafeOrdersError):
    """A required order field is missing, or a value is out of range."""

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None):
        self.fields = list(fields or [])
        detail = ", ".join(self.fields) if self.fields else None
        super().__init__(message, detail)


class NotFoundError(CafeOrdersError):
    """No order with the requested id exists."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class InvalidStateError(CafeOrdersError):
    """The lifecycle forbids the requested transition or feedback."""


class TransportError(CafeOrdersError):
    """Network or storage I/O failed, or returned something unreadable."""

    retryable = True


class FeedIntegrityError(CafeOrdersError):
    """
    The feed does not mark exactly one latest row for some order ids.

    Raised instead of guessing which revision is current.
    """

    def __init__(self, problems: dict[str, str]):
        self.problems = dict(problems)
        super().__init__(
            f"Feed has inconsistent latest revisions for {len(self.problems)} order(s)",
            detail="; ".join(f"{k}: {v}" for k, v in sorted(self.problems.items())),
        )

    @property
    def order_ids(self) -> list[str]:
        return sorted(self.problems)
