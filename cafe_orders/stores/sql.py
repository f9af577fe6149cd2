"""
SQL Order Store

Server-authoritative backend on SQLAlchemy's async engine. Orders are
updated in place inside a transaction, and the per-customer filter runs
in the database instead of in Python.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from cafe_orders.core.exceptions import NotFoundError, TransportError
from cafe_orders.database import OrderRecord, create_engine, create_session_maker, init_db
from cafe_orders.models import Order
from cafe_orders.stores.base import BaseOrderStore, OrderChange

logger = logging.getLogger(__name__)


class SqlOrderStore(BaseOrderStore):
    """
    Order store backed by a relational database.

    Call ``init()`` once before use to create the schema.
    """

    def __init__(self, engine: Optional[AsyncEngine] = None, url: Optional[str] = None):
        super().__init__()
        self.engine = engine or create_engine(url)
        self.session_maker = create_session_maker(self.engine)

    @property
    def provider_name(self) -> str:
        return "database"

    async def init(self) -> None:
        await init_db(self.engine)

    async def _insert(self, order: Order) -> None:
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    session.add(OrderRecord.from_order(order))
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert order {order.id}: {e}")
            raise TransportError("Database write failed", str(e)) from e

    async def _fetch_all(self) -> list[Order]:
        return await self._select(select(OrderRecord).order_by(OrderRecord.pk))

    async def _fetch(self, order_id: str) -> Optional[Order]:
        orders = await self._select(select(OrderRecord).where(OrderRecord.id == order_id))
        return orders[0] if orders else None

    async def list_by_customer(self, customer_id: str) -> list[Order]:
        return await self._select(
            select(OrderRecord)
            .where(OrderRecord.customer_id == customer_id)
            .order_by(OrderRecord.pk)
        )

    async def _select(self, statement) -> list[Order]:
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return [record.to_order() for record in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Database read failed: {e}")
            raise TransportError("Database read failed", str(e)) from e

    async def _apply(self, order_id: str, change: OrderChange) -> Order:
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    result = await session.execute(
                        select(OrderRecord)
                        .where(OrderRecord.id == order_id)
                        .with_for_update()
                    )
                    record = result.scalar_one_or_none()
                    if record is None:
                        raise NotFoundError(order_id)

                    order = record.to_order()
                    updated = change(order)
                    if updated is not order:
                        record.update_from(updated)
                    return updated
        except SQLAlchemyError as e:
            logger.error(f"Failed to update order {order_id}: {e}")
            raise TransportError("Database write failed", str(e)) from e

    async def health_check(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()
