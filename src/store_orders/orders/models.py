"""
store_orders.orders.models

Order records as exchanged with the Order Service.

Responsibilities:
- Parse order payloads into immutable models (items and totals frozen at creation).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from store_orders.auth.models import opaque_id
from store_orders.orders.status import OrderStatus


class OrderItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    product_id: str
    quantity: int = Field(ge=1)
    unit_price: Decimal
    total_price: Decimal
    product_name: str | None = None

    @field_validator("product_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v: Any) -> Any:
        return opaque_id(v)


class Order(BaseModel):
    """
    Historical record of a placed order.
    Only status, notes and the status timestamps ever change after creation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    order_number: str
    store_id: str
    user_id: str | None = None
    status: OrderStatus = OrderStatus.pending
    items: tuple[OrderItem, ...] = ()
    total_amount: Decimal
    notes: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    status_changed_to_pending: datetime | None = None
    status_changed_to_completed: datetime | None = None

    @field_validator("id", "store_id", "user_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v: Any) -> Any:
        return opaque_id(v)


# --- Module Notes -----------------------------------------------------------
# `total_amount` is whatever the server computed at creation; never recompute it
# from current catalog prices.
