"""
tests.conftest

Shared fixtures.

Responsibilities:
- Build the Identity/Order services app on a per-test SQLite file and drive it in-process.
- Seed a store, an admin, a store user and a small catalog.
- Provide JWT helpers for fabricating tokens with chosen claims/expiry.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import httpx
import jwt
import pytest
import pytest_asyncio
from fastapi import FastAPI

from store_orders.api.app import create_app
from store_orders.auth.models import Role
from store_orders.db.repositories.products import ProductRepo
from store_orders.db.repositories.users import StoreRepo, UserRepo
from store_orders.settings import Settings

ADMIN_EMAIL = "admin@x.com"
STORE_EMAIL = "a@x.com"
PASSWORD = "pw"


def make_token(*, exp_in: float = 3600, **claims: Any) -> str:
    # Unsigned-for-our-purposes token: the client never checks signatures.
    payload: dict[str, Any] = {"sub": "u-1", "exp": int(time.time() + exp_in), **claims}
    return jwt.encode(payload, "unit-test-signing-key-not-used-by-clients", algorithm="HS256")


@dataclass(frozen=True, slots=True)
class Seed:
    store_id: uuid.UUID
    other_store_id: uuid.UUID
    admin_id: uuid.UUID
    store_user_id: uuid.UUID
    widget_id: uuid.UUID
    gadget_id: uuid.UUID


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'store_orders.db'}",
        jwt_secret="test-secret-for-the-in-process-services",
        session_file=tmp_path / "session.json",
        api_base_url="http://test",
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not manage lifespan; start/stop explicitly.
    await app.router.startup()
    try:
        yield app
    finally:
        await app.router.shutdown()


@pytest_asyncio.fixture
async def seed(app: FastAPI) -> Seed:
    async with app.state.sessionmaker() as session:
        stores = StoreRepo(session)
        store = await stores.create(city="Springfield", address="1 Main St")
        other = await stores.create(city="Shelbyville", address="2 Side St")
        users = UserRepo(session)
        admin = await users.create(email=ADMIN_EMAIL, password=PASSWORD, role=Role.admin)
        store_user = await users.create(
            email=STORE_EMAIL, password=PASSWORD, role=Role.store, store_id=store.id
        )
        products = ProductRepo(session)
        widget = await products.create(name="Widget", sku="W-1", price=Decimal("2.50"))
        gadget = await products.create(name="Gadget", sku="G-1", price=Decimal("10.00"))
        await session.commit()
        return Seed(
            store_id=store.id,
            other_store_id=other.id,
            admin_id=admin.id,
            store_user_id=store_user.id,
            widget_id=widget.id,
            gadget_id=gadget.id,
        )


@pytest.fixture
def requests_seen() -> list[str]:
    return []


@pytest_asyncio.fixture
async def http(app: FastAPI, requests_seen: list[str]) -> AsyncIterator[httpx.AsyncClient]:
    async def _record(request: httpx.Request) -> None:
        requests_seen.append(f"{request.method} {request.url.path}")

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://test", event_hooks={"request": [_record]}
    ) as client:
        yield client
