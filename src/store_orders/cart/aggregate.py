"""
store_orders.cart.aggregate

In-memory cart aggregate.

Responsibilities:
- Merge, replace and remove product lines while keeping every quantity >= 1.
- Derive item count and live price total.
- Produce the `{product_id, quantity}` snapshot used for order submission.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from store_orders.auth.models import opaque_id


class Product(BaseModel):
    """
    Catalog entry as served by `GET /products`; only what the cart needs.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    price: Decimal
    sku: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return opaque_id(v)


@dataclass(frozen=True, slots=True)
class CartLine:
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class CartAggregate:
    """
    Not safe for concurrent read-modify-write from several flows; callers serialize.
    """

    def __init__(self) -> None:
        self._lines: dict[str, CartLine] = {}

    def add(self, product: Product, quantity: int = 1) -> CartLine:
        # Quantities below 1 are rejected rather than clamped.
        if quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {quantity}")
        existing = self._lines.get(product.id)
        if existing is None:
            line = CartLine(
                product_id=product.id,
                name=product.name,
                unit_price=product.price,
                quantity=quantity,
            )
        else:
            # Accumulate; the line follows the catalog's current price and name.
            line = replace(
                existing,
                name=product.name,
                unit_price=product.price,
                quantity=existing.quantity + quantity,
            )
        self._lines[product.id] = line
        return line

    def set_quantity(self, product_id: str, quantity: int) -> CartLine | None:
        existing = self._lines.get(product_id)
        if existing is None:
            return None
        if quantity < 1:
            del self._lines[product_id]
            return None
        line = replace(existing, quantity=quantity)
        self._lines[product_id] = line
        return line

    def remove(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def get(self, product_id: str) -> CartLine | None:
        return self._lines.get(product_id)

    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._lines

    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def total_price(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def snapshot_items(self) -> list[dict[str, Any]]:
        return [
            {"product_id": line.product_id, "quantity": line.quantity}
            for line in self._lines.values()
        ]


# --- Module Notes -----------------------------------------------------------
# `total_price` is a live figure; an Order's `total_amount` is frozen by the server
# at creation and may differ if prices changed in between.
