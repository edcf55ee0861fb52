"""
store_orders.db.repositories.products

Repository for `Product` entities (read-mostly catalog).
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from store_orders.db.models import Product


class ProductRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, name: str, sku: str, price: Decimal) -> Product:
        product = Product(name=name, sku=sku, price=price)
        self._session.add(product)
        await self._session.flush()
        return product

    async def set_price(self, product_id: uuid.UUID, price: Decimal) -> None:
        product = await self._session.get(Product, product_id)
        if product is not None:
            product.price = price
            await self._session.flush()

    async def get_many(self, product_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        stmt = select(Product).where(Product.id.in_(ids))
        return {p.id: p for p in (await self._session.execute(stmt)).scalars().all()}

    async def list_all(self) -> list[Product]:
        stmt = select(Product).order_by(Product.name)
        return list((await self._session.execute(stmt)).scalars().all())
