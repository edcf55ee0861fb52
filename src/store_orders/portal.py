"""
store_orders.portal

Client composition root.

Responsibilities:
- Wire one SessionManager into the cart scope, order submission and status updates.
- Clear the cart when the session ends, when another user signs in, and after a
  confirmed order placement.
- Hand a 401 from the Order Service to the SessionManager (one refresh, else logout).
"""

from __future__ import annotations

import httpx

from store_orders.auth.manager import SessionManager, SessionState
from store_orders.auth.store import FileSessionStore, SessionStore
from store_orders.cart.aggregate import CartAggregate
from store_orders.errors import RequestFailed
from store_orders.orders.models import Order
from store_orders.orders.status import OrderStatus, OrderStatusMachine
from store_orders.orders.submitter import OrderSubmitter
from store_orders.orders.updater import OrderStatusUpdater
from store_orders.service_clients.http import IdentityClient, OrderServiceClient
from store_orders.settings import Settings


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.api_base_url.rstrip("/"),
        timeout=settings.http_timeout_seconds,
    )


class Portal:
    def __init__(self, *, http: httpx.AsyncClient, store: SessionStore) -> None:
        self.session = SessionManager(identity=IdentityClient(http=http), store=store)
        self.orders = OrderServiceClient(http=http, token=lambda: self.session.access_token)
        self.cart = CartAggregate()
        self.machine = OrderStatusMachine()
        self.submitter = OrderSubmitter(orders=self.orders)
        self.status_updater = OrderStatusUpdater(
            session=self.session, orders=self.orders, machine=self.machine
        )
        # Id of the user the cart lines were collected for.
        self._cart_owner: str | None = None
        self.session.add_listener(self._on_session_state)

    @classmethod
    def from_settings(cls, settings: Settings, *, http: httpx.AsyncClient) -> Portal:
        return cls(http=http, store=FileSessionStore(settings.session_file))

    def _on_session_state(self, state: SessionState) -> None:
        # The cart belongs to the session; it does not outlive it or pass to another user.
        if state is SessionState.logged_out:
            self.cart.clear()
            self._cart_owner = None
        elif state is SessionState.authenticated:
            user = self.session.user
            owner = user.id if user else None
            if self._cart_owner is not None and owner != self._cart_owner:
                self.cart.clear()
            self._cart_owner = owner

    async def _end_rejected_session(self, e: RequestFailed) -> None:
        # A 401 means the bearer token is dead; refresh once, which logs out on failure.
        # The rejected call itself is not retried.
        if e.status_code == 401 and self.session.is_authenticated:
            await self.session.refresh()

    async def place_order(self, notes: str | None = None) -> str:
        user = self.session.user
        try:
            order_id = await self.submitter.place(
                self.cart, user.store_id if user else None, notes=notes
            )
        except RequestFailed as e:
            await self._end_rejected_session(e)
            raise
        # Only reached once an order id came back; failures leave the cart intact.
        self.cart.clear()
        return order_id

    async def update_status(
        self, order: Order, target: OrderStatus, notes: str | None = None
    ) -> Order:
        try:
            return await self.status_updater.update_status(order, target, notes=notes)
        except RequestFailed as e:
            await self._end_rejected_session(e)
            raise


# --- Module Notes -----------------------------------------------------------
# Tests build a Portal over an httpx client bound to the in-process FastAPI app
# (ASGITransport) and a MemorySessionStore.
