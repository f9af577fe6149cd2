"""
Database Connection Module

SQLAlchemy async engine, session factory and the ``orders`` table used by
the database-backed order store. SQLite (aiosqlite) by default; any async
SQLAlchemy URL works.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import func

from cafe_orders.core.config import get_settings
from cafe_orders.models import Order

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


class OrderRecord(Base):
    """
    Orders table - one row per order, updated in place.
    """
    __tablename__ = "orders"

    # Insertion order; the public id is the UUID below
    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, index=True, nullable=False)

    # =========================================================================
    # CUSTOMER & DRINK
    # =========================================================================
    customer_id = Column(String(64), nullable=False, index=True)
    customer_name = Column(String(100), nullable=False)
    drink_name = Column(String(100), nullable=False)
    seating_location = Column(String(100), nullable=False)
    special_instructions = Column(Text, nullable=True)
    toppings = Column(Text, nullable=False, default="[]")  # JSON array of names

    # =========================================================================
    # LIFECYCLE
    # =========================================================================
    order_status = Column(String(20), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    # =========================================================================
    # FEEDBACK
    # =========================================================================
    rating = Column(Integer, nullable=True)
    feedback_comment = Column(Text, nullable=True)
    feedback_timestamp = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @classmethod
    def from_order(cls, order: Order) -> "OrderRecord":
        record = cls(id=order.id)
        record.update_from(order)
        return record

    def update_from(self, order: Order) -> None:
        self.customer_id = order.customer_id
        self.customer_name = order.customer_name
        self.drink_name = order.drink_name
        self.seating_location = order.seating_location
        self.special_instructions = order.special_instructions
        self.toppings = json.dumps(order.toppings)
        self.order_status = order.order_status.value
        self.timestamp = order.timestamp
        self.rating = order.rating
        self.feedback_comment = order.feedback_comment
        self.feedback_timestamp = order.feedback_timestamp

    def to_order(self) -> Order:
        return Order(
            id=self.id,
            customer_id=self.customer_id,
            customer_name=self.customer_name,
            drink_name=self.drink_name,
            seating_location=self.seating_location,
            special_instructions=self.special_instructions,
            toppings=json.loads(self.toppings or "[]"),
            order_status=self.order_status,
            timestamp=self.timestamp,
            rating=self.rating,
            feedback_comment=self.feedback_comment,
            feedback_timestamp=self.feedback_timestamp,
        )

    def __repr__(self):
        return f"<OrderRecord {self.id}: {self.drink_name} - {self.order_status}>"


def create_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """Create an async engine from settings unless overridden."""
    settings = get_settings()
    return create_async_engine(
        url or settings.database_url,
        echo=settings.database_echo if echo is None else echo,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Objects remain accessible after commit
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Database tables ready")
