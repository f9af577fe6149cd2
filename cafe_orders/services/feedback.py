"""
Feedback Service

One-time rating (1-5) and comment on a delivered order, plus an aggregate
summary for the barista dashboard.
"""

import logging
from typing import Iterable, Optional

from cafe_orders.models import FeedbackSummary, Order
from cafe_orders.stores import BaseOrderStore, get_order_store

logger = logging.getLogger(__name__)


def summarize_ratings(orders: Iterable[Order]) -> FeedbackSummary:
    """Count and average (2 decimals) of the rated orders."""
    ratings = [o.rating for o in orders if o.rating is not None]
    if not ratings:
        return FeedbackSummary()
    average = round(sum(ratings) / len(ratings), 2)
    logger.debug(f"Feedback summary: {len(ratings)} ratings, average {average}")
    return FeedbackSummary(count=len(ratings), average_rating=average)


class FeedbackService:
    def __init__(self, store: Optional[BaseOrderStore] = None):
        self.store = store or get_order_store()

    async def submit_feedback(self, order_id: str, rating: int, comment: Optional[str] = None) -> Order:
        """
        Attach feedback to a delivered order.

        Raises:
            ValidationError: If the rating is not an integer in [1, 5]
            NotFoundError: If the order does not exist
            InvalidStateError: If the order is not Delivered or already rated
        """
        return await self.store.attach_feedback(order_id, rating, comment)

    async def summarize(self) -> FeedbackSummary:
        return summarize_ratings(await self.store.list_all())
