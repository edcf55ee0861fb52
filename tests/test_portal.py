"""
tests.test_portal

Portal reactions to Order Service auth failures (scripted services, httpx.MockTransport).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from store_orders.auth.manager import SessionState
from store_orders.auth.store import MemorySessionStore
from store_orders.cart.aggregate import Product
from store_orders.errors import RequestFailed
from store_orders.orders.models import Order
from store_orders.orders.status import OrderStatus
from store_orders.portal import Portal
from tests.conftest import make_token

USER = {"id": "u-1", "email": "a@x.com", "role": "store", "store_id": "s-1"}


class FakeServices:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.issued = 0
        self.orders_status = 401
        self.refresh_status = 200

    def _tokens(self) -> dict:
        self.issued += 1
        return {"user": USER, "token": make_token(n=self.issued), "refresh_token": f"refresh-{self.issued}"}

    async def handler(self, request: httpx.Request) -> httpx.Response:
        route = f"{request.method} {request.url.path}"
        self.calls.append(route)
        if route == "POST /auth/login":
            return httpx.Response(200, json=self._tokens())
        if route == "POST /auth/refresh":
            if self.refresh_status != 200:
                return httpx.Response(self.refresh_status, json={"error": "refresh token revoked"})
            return httpx.Response(200, json=self._tokens())
        if request.url.path.startswith("/orders"):
            return httpx.Response(self.orders_status, json={"error": "token rejected"})
        return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def services() -> FakeServices:
    return FakeServices()


@pytest_asyncio.fixture
async def portal(services: FakeServices) -> AsyncIterator[Portal]:
    transport = httpx.MockTransport(services.handler)
    async with httpx.AsyncClient(transport=transport, base_url="http://portal") as http:
        portal = Portal(http=http, store=MemorySessionStore())
        assert await portal.session.login("a@x.com", "pw")
        portal.cart.add(Product(id="p-1", name="Widget", price=Decimal("2.50")), 2)
        yield portal


def _order() -> Order:
    return Order.model_validate(
        {
            "id": "o-1",
            "order_number": "ORD-20260101-000001",
            "store_id": "s-1",
            "status": "PENDING",
            "total_amount": "5.00",
            "created_at": "2026-01-01T10:00:00Z",
        }
    )


@pytest.mark.asyncio
async def test_401_on_place_order_refreshes_without_resubmitting(portal: Portal, services) -> None:
    old = portal.session.access_token

    with pytest.raises(RequestFailed) as exc:
        await portal.place_order()

    assert exc.value.status_code == 401
    assert services.calls.count("POST /orders") == 1
    assert services.calls.count("POST /auth/refresh") == 1
    assert portal.session.state is SessionState.authenticated
    assert portal.session.access_token != old
    assert len(portal.cart) == 1


@pytest.mark.asyncio
async def test_401_with_failed_refresh_logs_out(portal: Portal, services) -> None:
    services.refresh_status = 401

    with pytest.raises(RequestFailed):
        await portal.place_order()

    assert portal.session.state is SessionState.logged_out
    assert portal.session.access_token is None
    assert portal.cart.is_empty


@pytest.mark.asyncio
async def test_401_on_status_update_ends_session(portal: Portal, services) -> None:
    services.refresh_status = 401

    with pytest.raises(RequestFailed):
        await portal.update_status(_order(), OrderStatus.delivered)

    assert services.calls.count("PUT /orders/o-1/status") == 1
    assert portal.session.state is SessionState.logged_out


@pytest.mark.asyncio
async def test_other_failures_leave_the_session_alone(portal: Portal, services) -> None:
    services.orders_status = 500

    with pytest.raises(RequestFailed):
        await portal.place_order()

    assert "POST /auth/refresh" not in services.calls
    assert portal.session.state is SessionState.authenticated
    assert len(portal.cart) == 1
