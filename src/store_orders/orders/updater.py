"""
store_orders.orders.updater

Client-side order status updates.

Responsibilities:
- Ask the OrderStatusMachine before any request, using the session's role.
- Submit the transition and return the Order Service's updated record.
"""

from __future__ import annotations

from store_orders.auth.manager import SessionManager
from store_orders.errors import Forbidden, InvalidTransition, MalformedResponse, RequestFailed
from store_orders.observability.logging import get_logger
from store_orders.orders.models import Order
from store_orders.orders.status import OrderStatus, OrderStatusMachine
from store_orders.service_clients.http import OrderServiceClient, parse_order, unwrap

log = get_logger(__name__)


class OrderStatusUpdater:
    def __init__(
        self,
        *,
        session: SessionManager,
        orders: OrderServiceClient,
        machine: OrderStatusMachine | None = None,
    ) -> None:
        self._session = session
        self._orders = orders
        self._machine = machine or OrderStatusMachine()

    def allowed_targets(self, order: Order) -> frozenset[OrderStatus]:
        # What the UI may offer for this order; empty when logged out.
        user = self._session.user
        if user is None:
            return frozenset()
        return self._machine.allowed_targets(current=order.status, role=user.role)

    async def update_status(
        self, order: Order, target: OrderStatus, notes: str | None = None
    ) -> Order:
        """
        Returns a new Order; `order` itself is frozen and stays as it was, so a UI that
        showed the change optimistically reverts by re-rendering the original.
        """

        user = self._session.user
        if user is None:
            raise Forbidden("not signed in")
        self._machine.check(current=order.status, target=target, role=user.role)

        try:
            body = await self._orders.update_status(
                order_id=order.id, status=target.value, notes=notes
            )
        except RequestFailed as e:
            # The service holds the authoritative status; it may have moved since we loaded it.
            if e.status_code == 403:
                raise Forbidden(e.message) from e
            if e.status_code == 409:
                raise InvalidTransition(e.message) from e
            raise
        data = unwrap(body)
        if not isinstance(data, dict) or not data.get("id"):
            raise MalformedResponse("updated order missing in response")
        updated = parse_order(data)
        log.info(
            "order_status_updated",
            order_id=order.id,
            previous=order.status.value,
            status=updated.status.value,
            role=user.role.value,
        )
        return updated


# --- Module Notes -----------------------------------------------------------
# The Order Service re-checks the same table against its own copy of the order;
# its 403/409 answers are mapped back onto Forbidden/InvalidTransition.
