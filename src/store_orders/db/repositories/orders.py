"""
store_orders.db.repositories.orders

Repository for `Order` / `OrderItem` entities.

Responsibilities:
- Insert an order together with its items.
- Fetch orders (all, per store, by id) and persist status changes under a row lock.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from store_orders.db.models import Order, OrderItem
from store_orders.orders.status import OrderStatus


class OrderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, order: Order, items: list[OrderItem]) -> Order:
        order.items = items
        self._session.add(order)
        await self._session.flush()
        return order

    async def get(self, order_id: uuid.UUID, *, for_update: bool = False) -> Order | None:
        return await self._session.get(Order, order_id, with_for_update=for_update)

    async def number_exists(self, order_number: str) -> bool:
        stmt = select(Order.id).where(Order.order_number == order_number).limit(1)
        return (await self._session.execute(stmt)).first() is not None

    async def list_orders(
        self, *, store_id: uuid.UUID | None = None, limit: int = 200
    ) -> list[Order]:
        # Newest first, matching the order history view.
        stmt = select(Order).order_by(desc(Order.created_at)).limit(limit)
        if store_id is not None:
            stmt = stmt.where(Order.store_id == store_id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def set_status(
        self,
        order: Order,
        *,
        status: OrderStatus,
        notes: str | None,
        now: datetime,
    ) -> Order:
        order.status = status
        order.updated_at = now
        if notes is not None:
            order.notes = notes
        if status is OrderStatus.pending:
            order.status_changed_to_pending = now
        elif status is OrderStatus.delivered:
            order.status_changed_to_completed = now
        await self._session.flush()
        return order


# --- Module Notes -----------------------------------------------------------
# `get(..., for_update=True)` serializes concurrent status updates on backends that
# support row locks; SQLite ignores it.
