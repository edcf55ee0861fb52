"""
store_orders.orders.submitter

Cart -> order submission.

Responsibilities:
- Reject requests the Order Service would refuse anyway (no store, empty cart) before I/O.
- Snapshot the cart into a create-order request and locate the new order id in the reply.
- Keep "request failed" (retry-safe) apart from "succeeded but unreadable" (retry-unsafe).
"""

from __future__ import annotations

from typing import Any

from store_orders.cart.aggregate import CartAggregate
from store_orders.errors import EmptyCart, MalformedResponse, MissingStore
from store_orders.observability.logging import get_logger
from store_orders.service_clients.http import OrderServiceClient, unwrap

log = get_logger(__name__)


def _order_id(data: Any) -> str | None:
    # The id may sit at data.id or data.order.id depending on the service version.
    if not isinstance(data, dict):
        return None
    candidate = data.get("id")
    if candidate in (None, "") and isinstance(data.get("order"), dict):
        candidate = data["order"].get("id")
    if candidate in (None, "") or isinstance(candidate, bool):
        return None
    return str(candidate)


class OrderSubmitter:
    """
    Does not clear the cart and never retries; both are the caller's decision.
    """

    def __init__(self, *, orders: OrderServiceClient) -> None:
        self._orders = orders

    async def place(
        self,
        cart: CartAggregate,
        store_id: str | None,
        notes: str | None = None,
    ) -> str:
        if not store_id:
            raise MissingStore("an order needs a store; sign in as a store user")
        if cart.is_empty:
            raise EmptyCart("the cart is empty")

        payload: dict[str, Any] = {"store_id": store_id, "items": cart.snapshot_items()}
        if notes and notes.strip():
            payload["notes"] = notes.strip()

        # RequestFailed (transport, non-2xx, success=false) propagates unchanged.
        body = await self._orders.create_order(payload)
        order_id = _order_id(unwrap(body))
        if order_id is None:
            log.error("order_id_missing", store_id=store_id, lines=len(cart))
            raise MalformedResponse("order id missing in response")

        log.info("order_placed", order_id=order_id, store_id=store_id, lines=len(cart))
        return order_id


# --- Module Notes -----------------------------------------------------------
# A MalformedResponse means the order may exist server-side: the cart is kept and the
# UI should send the user to order history instead of offering a retry.
