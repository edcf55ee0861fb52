"""
store_orders.api.routers.orders

Order Service endpoints.

Responsibilities:
- Create orders from a cart snapshot (`POST /orders`).
- Read orders with store scoping for store users.
- Apply status transitions (`PUT /orders/{id}/status`) via OrderService.

Responses use the `{"success": true, "data": ...}` envelope the portal expects.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)

from store_orders.api.deps import order_service
from store_orders.auth.deps import get_principal
from store_orders.auth.models import Principal
from store_orders.db.models import Order as OrderRow
from store_orders.errors import Forbidden, InvalidTransition
from store_orders.orders.models import Order
from store_orders.orders.status import OrderStatus
from store_orders.services.order_service import OrderLine, OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


class CreateOrderItem(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(ge=1)


class CreateOrderRequest(BaseModel):
    store_id: uuid.UUID
    items: list[CreateOrderItem] = Field(min_length=1)
    notes: str | None = Field(default=None, max_length=2000)


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    notes: str | None = Field(default=None, max_length=2000)


def _dump(row: OrderRow) -> dict[str, Any]:
    # The portal's Order model is the wire schema.
    return Order.model_validate(row, from_attributes=True).model_dump(mode="json")


def _ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def _not_found() -> HTTPException:
    return HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Order not found")


@router.post("", status_code=HTTP_201_CREATED)
async def create_order(
    body: CreateOrderRequest,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(order_service),
) -> dict[str, Any]:
    try:
        row = await svc.create(
            principal=principal,
            store_id=body.store_id,
            lines=[OrderLine(product_id=i.product_id, quantity=i.quantity) for i in body.items],
            notes=body.notes.strip() if body.notes and body.notes.strip() else None,
        )
    except Forbidden as e:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return _ok(_dump(row))


@router.get("")
async def list_orders(
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(order_service),
) -> dict[str, Any]:
    # Admins see every store; store users see their own.
    rows = await svc.list_orders(principal=principal)
    return _ok([_dump(r) for r in rows])


@router.get("/store/{store_id}")
async def list_store_orders(
    store_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(order_service),
) -> dict[str, Any]:
    try:
        rows = await svc.list_orders(principal=principal, store_id=store_id)
    except Forbidden as e:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=str(e)) from e
    return _ok([_dump(r) for r in rows])


@router.get("/{order_id}")
async def get_order(
    order_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(order_service),
) -> dict[str, Any]:
    row = await svc.get(principal=principal, order_id=order_id)
    if row is None:
        raise _not_found()
    return _ok(_dump(row))


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: uuid.UUID,
    body: UpdateOrderStatusRequest,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(order_service),
) -> dict[str, Any]:
    try:
        row = await svc.update_status(
            principal=principal, order_id=order_id, target=body.status, notes=body.notes
        )
    except Forbidden as e:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=str(e)) from e
    except InvalidTransition as e:
        raise HTTPException(status_code=HTTP_409_CONFLICT, detail=str(e)) from e
    if row is None:
        raise _not_found()
    return _ok(_dump(row))


# --- Module Notes -----------------------------------------------------------
# A store user asking for another store gets 403 on the list endpoint but 404 on a
# single order, so order ids from other stores are not confirmed to exist.
