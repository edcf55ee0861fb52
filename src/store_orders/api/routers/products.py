"""
store_orders.api.routers.products

Read-only catalog feed for the portal cart.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from store_orders.api.deps import db_session
from store_orders.auth.deps import get_principal
from store_orders.db.repositories.products import ProductRepo

router = APIRouter(prefix="/products", tags=["products"], dependencies=[Depends(get_principal)])


@router.get("")
async def list_products(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    products = await ProductRepo(session).list_all()
    return {
        "success": True,
        "count": len(products),
        "data": [
            {"id": str(p.id), "name": p.name, "sku": p.sku, "price": str(p.price)}
            for p in products
        ],
    }
