"""
store_orders.services.order_service

Order lifecycle service (transaction + persistence owner).

Responsibilities:
- Create orders from requested lines, freezing unit prices and the total at creation.
- Scope order visibility to the caller's store for store users.
- Apply status transitions through the shared OrderStatusMachine.
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from store_orders.auth.models import Principal
from store_orders.db.models import Order, OrderItem
from store_orders.db.repositories.orders import OrderRepo
from store_orders.db.repositories.products import ProductRepo
from store_orders.db.repositories.users import StoreRepo
from store_orders.errors import Forbidden
from store_orders.observability.logging import get_logger
from store_orders.orders.status import OrderStatus, OrderStatusMachine

log = get_logger(__name__)

_ORDER_NUMBER_ATTEMPTS = 5


@dataclass(frozen=True, slots=True)
class OrderLine:
    product_id: uuid.UUID
    quantity: int


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(tz=UTC)
    return f"ORD-{now:%Y%m%d}-{secrets.randbelow(1_000_000):06d}"


def _utcnow() -> datetime:
    # Matches the naive-UTC convention of the ORM columns.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class OrderService:
    def __init__(self, *, session: AsyncSession, machine: OrderStatusMachine | None = None) -> None:
        self._session = session
        self._machine = machine or OrderStatusMachine()

        self._orders = OrderRepo(session)
        self._products = ProductRepo(session)
        self._stores = StoreRepo(session)

    @staticmethod
    def can_see(principal: Principal, order: Order) -> bool:
        if principal.is_admin:
            return True
        return principal.store_id is not None and str(order.store_id) == principal.store_id

    async def create(
        self,
        *,
        principal: Principal,
        store_id: uuid.UUID,
        lines: list[OrderLine],
        notes: str | None = None,
    ) -> Order:
        if not principal.is_admin and str(store_id) != principal.store_id:
            raise Forbidden("store users may only order for their own store")
        if not lines:
            raise ValueError("an order needs at least one item")
        if await self._stores.get(store_id) is None:
            raise ValueError("unknown store")

        # Duplicate lines for one product collapse into a single item.
        quantities: dict[uuid.UUID, int] = {}
        for line in lines:
            if line.quantity < 1:
                raise ValueError("quantity must be >= 1")
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        products = await self._products.get_many(quantities)
        missing = [str(pid) for pid in quantities if pid not in products]
        if missing:
            raise ValueError(f"unknown product(s): {', '.join(missing)}")

        now = _utcnow()
        items: list[OrderItem] = []
        total = Decimal("0")
        for product_id, quantity in quantities.items():
            product = products[product_id]
            line_total = product.price * quantity
            total += line_total
            items.append(
                OrderItem(
                    product_id=product_id,
                    product_name=product.name,
                    quantity=quantity,
                    unit_price=product.price,
                    total_price=line_total,
                    created_at=now,
                )
            )

        order = Order(
            order_number=await self._unique_order_number(),
            user_id=uuid.UUID(principal.subject),
            store_id=store_id,
            status=OrderStatus.pending,
            total_amount=total,
            notes=notes,
            created_at=now,
            updated_at=now,
            status_changed_to_pending=now,
        )
        await self._orders.add(order, items)
        await self._session.commit()
        log.info(
            "order_created",
            order_id=str(order.id),
            order_number=order.order_number,
            store_id=str(store_id),
            total_amount=str(total),
        )
        return order

    async def get(self, *, principal: Principal, order_id: uuid.UUID) -> Order | None:
        order = await self._orders.get(order_id)
        if order is None or not self.can_see(principal, order):
            return None
        return order

    async def list_orders(
        self, *, principal: Principal, store_id: uuid.UUID | None = None
    ) -> list[Order]:
        if not principal.is_admin:
            if store_id is not None and str(store_id) != principal.store_id:
                raise Forbidden("store users only see their own store's orders")
            store_id = uuid.UUID(principal.store_id) if principal.store_id else None
            if store_id is None:
                return []
        return await self._orders.list_orders(store_id=store_id)

    async def update_status(
        self,
        *,
        principal: Principal,
        order_id: uuid.UUID,
        target: OrderStatus,
        notes: str | None = None,
    ) -> Order | None:
        order = await self._orders.get(order_id, for_update=True)
        if order is None or not self.can_see(principal, order):
            return None

        previous = order.status
        # Raises Forbidden / InvalidTransition; nothing has been written yet.
        self._machine.check(current=previous, target=target, role=principal.role)

        await self._orders.set_status(order, status=target, notes=notes, now=_utcnow())
        await self._session.commit()
        log.info(
            "order_status_changed",
            order_id=str(order.id),
            previous=previous.value,
            status=target.value,
            role=principal.role.value,
        )
        return order

    async def _unique_order_number(self) -> str:
        for _ in range(_ORDER_NUMBER_ATTEMPTS):
            candidate = generate_order_number()
            if not await self._orders.number_exists(candidate):
                return candidate
        raise RuntimeError("could not allocate a unique order number")


# --- Module Notes -----------------------------------------------------------
# This service is the transaction boundary: it commits once per create/update, after
# all checks pass, so a rejected transition never leaves a partial write behind.
