"""
tests.test_session_manager

Session lifecycle against a scripted Identity Service (httpx.MockTransport).
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from store_orders.auth.manager import SessionManager, SessionState
from store_orders.auth.models import Role, Session, UserIdentity
from store_orders.auth.store import MemorySessionStore
from store_orders.errors import AuthenticationFailed, SessionExpired
from store_orders.service_clients.http import IdentityClient
from tests.conftest import make_token


class FakeIdentity:
    """
    Minimal Identity Service. Counts calls per route and lets tests script failures.
    """

    def __init__(self) -> None:
        self.user: dict[str, Any] = {"id": "u-1", "email": "a@x.com", "role": "store", "store_id": "s-1"}
        self.calls: list[str] = []
        self.me_status = 200
        self.refresh_status = 200
        self.me_error: Exception | None = None
        self.refresh_gate: asyncio.Event | None = None
        self.issued = 0

    def _tokens(self) -> dict[str, Any]:
        self.issued += 1
        return {
            "user": self.user,
            "token": make_token(exp_in=3600, n=self.issued),
            "refresh_token": f"refresh-{self.issued}",
        }

    async def handler(self, request: httpx.Request) -> httpx.Response:
        route = f"{request.method} {request.url.path}"
        self.calls.append(route)

        if route == "POST /auth/login":
            body = json.loads(request.content)
            if body.get("password") != "pw":
                return httpx.Response(401, json={"error": "Invalid credentials"})
            return httpx.Response(200, json=self._tokens())

        if route == "GET /auth/me":
            if self.me_error is not None:
                raise self.me_error
            if self.me_status != 200:
                return httpx.Response(self.me_status, json={"error": "nope"})
            return httpx.Response(200, json=self.user)

        if route == "POST /auth/refresh":
            if self.refresh_gate is not None:
                await self.refresh_gate.wait()
            if self.refresh_status != 200:
                return httpx.Response(self.refresh_status, json={"error": "refresh token revoked"})
            return httpx.Response(200, json=self._tokens())

        return httpx.Response(404, json={"error": "not found"})

    def count(self, route: str) -> int:
        return self.calls.count(route)


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest_asyncio.fixture
async def manager(identity: FakeIdentity, store: MemorySessionStore) -> AsyncIterator[SessionManager]:
    transport = httpx.MockTransport(identity.handler)
    async with httpx.AsyncClient(transport=transport, base_url="http://identity") as http:
        yield SessionManager(identity=IdentityClient(http=http), store=store)


async def _until_called(identity: FakeIdentity, route: str) -> None:
    for _ in range(1_000):
        if route in identity.calls:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"{route} was never called")


def _stored(token: str, *, refresh: str = "refresh-0") -> Session:
    return Session(
        access_token=token,
        refresh_token=refresh,
        user=UserIdentity(id="u-1", email="a@x.com", role="store", store_id="s-1"),
    )


# -- login / logout -----------------------------------------------------------


@pytest.mark.asyncio
async def test_login_installs_and_persists_session(manager: SessionManager, store) -> None:
    seen: list[SessionState] = []
    manager.add_listener(seen.append)

    assert await manager.login("a@x.com", "pw") is True

    assert manager.state is SessionState.authenticated
    assert manager.is_authenticated
    assert manager.user.role is Role.store
    assert manager.user.store_id == "s-1"
    assert store.load() == manager.session
    assert seen == [SessionState.authenticating, SessionState.authenticated]


@pytest.mark.asyncio
async def test_login_rejected_credentials(manager: SessionManager, store) -> None:
    assert await manager.login("a@x.com", "wrong") is False

    assert manager.state is SessionState.logged_out
    assert manager.access_token is None
    assert isinstance(manager.last_error, AuthenticationFailed)
    assert str(manager.last_error) == "Invalid credentials"
    assert store.load() is None


@pytest.mark.asyncio
async def test_failed_login_keeps_existing_session(manager: SessionManager) -> None:
    await manager.login("a@x.com", "pw")
    token = manager.access_token

    assert await manager.login("a@x.com", "wrong") is False
    assert manager.state is SessionState.authenticated
    assert manager.access_token == token


@pytest.mark.asyncio
async def test_logout_is_idempotent(manager: SessionManager, store) -> None:
    seen: list[SessionState] = []
    remove = manager.add_listener(seen.append)
    await manager.login("a@x.com", "pw")

    manager.logout()
    manager.logout()

    assert manager.state is SessionState.logged_out
    assert manager.session is None
    assert store.load() is None
    assert seen.count(SessionState.logged_out) == 1

    remove()
    await manager.login("a@x.com", "pw")
    assert seen[-1] is SessionState.logged_out


# -- refresh ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_concurrent_refreshes_share_one_request(manager: SessionManager, identity) -> None:
    await manager.login("a@x.com", "pw")
    old = manager.access_token
    identity.refresh_gate = asyncio.Event()

    waiters = [asyncio.create_task(manager.refresh()) for _ in range(5)]
    await _until_called(identity, "POST /auth/refresh")
    assert manager.state is SessionState.refreshing
    identity.refresh_gate.set()
    results = await asyncio.gather(*waiters)

    assert results == [True] * 5
    assert identity.count("POST /auth/refresh") == 1
    assert manager.access_token != old
    assert manager.state is SessionState.authenticated


@pytest.mark.asyncio
async def test_refresh_after_completion_issues_new_request(manager: SessionManager, identity) -> None:
    await manager.login("a@x.com", "pw")
    assert await manager.refresh() is True
    assert await manager.refresh() is True
    assert identity.count("POST /auth/refresh") == 2


@pytest.mark.asyncio
async def test_refresh_failure_logs_out(manager: SessionManager, identity, store) -> None:
    await manager.login("a@x.com", "pw")
    identity.refresh_status = 401

    assert await manager.refresh() is False

    assert manager.state is SessionState.logged_out
    assert manager.access_token is None
    assert store.load() is None
    assert isinstance(manager.last_error, SessionExpired)


@pytest.mark.asyncio
async def test_refresh_without_session(manager: SessionManager, identity) -> None:
    assert await manager.refresh() is False
    assert isinstance(manager.last_error, SessionExpired)
    assert identity.count("POST /auth/refresh") == 0


@pytest.mark.asyncio
async def test_logout_during_refresh_is_not_undone(manager: SessionManager, identity, store) -> None:
    await manager.login("a@x.com", "pw")
    identity.refresh_gate = asyncio.Event()

    pending = asyncio.create_task(manager.refresh())
    await _until_called(identity, "POST /auth/refresh")
    manager.logout()
    identity.refresh_gate.set()

    assert await pending is False
    assert manager.state is SessionState.logged_out
    assert store.load() is None


# -- validate -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_validate_adopts_server_role(manager: SessionManager, identity, store) -> None:
    await manager.login("a@x.com", "pw")
    identity.user = {"id": "u-1", "email": "a@x.com", "role": "admin", "store_id": "s-1"}

    assert await manager.validate() is True

    assert manager.user.role is Role.admin
    assert manager.user.store_id is None
    assert store.load().user.role is Role.admin


@pytest.mark.asyncio
async def test_validate_401_triggers_refresh(manager: SessionManager, identity) -> None:
    await manager.login("a@x.com", "pw")
    identity.me_status = 401

    assert await manager.validate() is True

    assert identity.count("GET /auth/me") == 1
    assert identity.count("POST /auth/refresh") == 1
    assert manager.state is SessionState.authenticated


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 500, 503])
async def test_validate_other_failures_log_out(manager: SessionManager, identity, status: int) -> None:
    await manager.login("a@x.com", "pw")
    identity.me_status = status

    assert await manager.validate() is False
    assert manager.state is SessionState.logged_out
    assert manager.last_error.status_code == status


@pytest.mark.asyncio
async def test_validate_network_error_logs_out(manager: SessionManager, identity) -> None:
    await manager.login("a@x.com", "pw")
    identity.me_error = httpx.ConnectError("connection refused")

    assert await manager.validate() is False
    assert manager.state is SessionState.logged_out
    assert manager.last_error.retry_safe is True


@pytest.mark.asyncio
async def test_validate_without_session(manager: SessionManager, identity) -> None:
    assert await manager.validate() is False
    assert identity.calls == []


# -- bootstrap ----------------------------------------------------------------


@pytest.mark.asyncio
async def test_bootstrap_empty_store(manager: SessionManager, identity) -> None:
    assert await manager.bootstrap() is False
    assert manager.state is SessionState.logged_out
    assert identity.calls == []


@pytest.mark.asyncio
async def test_bootstrap_valid_token_validates_only(manager: SessionManager, identity, store) -> None:
    store.save(_stored(make_token(exp_in=600)))

    assert await manager.bootstrap() is True
    assert identity.calls == ["GET /auth/me"]
    assert manager.state is SessionState.authenticated


@pytest.mark.asyncio
async def test_bootstrap_expired_token_refreshes_first(manager: SessionManager, identity, store) -> None:
    store.save(_stored(make_token(exp_in=-60)))
    seen: list[SessionState] = []
    manager.add_listener(seen.append)

    assert await manager.bootstrap() is True

    assert identity.calls == ["POST /auth/refresh", "GET /auth/me"]
    assert store.load().refresh_token == "refresh-1"
    assert seen == [SessionState.authenticating, SessionState.refreshing, SessionState.authenticated]


@pytest.mark.asyncio
async def test_bootstrap_expired_and_refresh_rejected(manager: SessionManager, identity, store) -> None:
    store.save(_stored(make_token(exp_in=-60)))
    identity.refresh_status = 401

    assert await manager.bootstrap() is False

    assert identity.calls == ["POST /auth/refresh"]
    assert manager.state is SessionState.logged_out
    assert store.load() is None


@pytest.mark.asyncio
async def test_bootstrap_garbage_token_counts_as_expired(manager: SessionManager, identity, store) -> None:
    store.save(_stored("not-a-jwt"))
    assert await manager.bootstrap() is True
    assert identity.calls[0] == "POST /auth/refresh"


# -- storage ------------------------------------------------------------------


class BrokenStore(MemorySessionStore):
    def save(self, session: Session) -> None:
        raise OSError("disk full")


@pytest.mark.asyncio
async def test_storage_errors_propagate(identity: FakeIdentity) -> None:
    transport = httpx.MockTransport(identity.handler)
    async with httpx.AsyncClient(transport=transport, base_url="http://identity") as http:
        manager = SessionManager(identity=IdentityClient(http=http), store=BrokenStore())
        with pytest.raises(OSError, match="disk full"):
            await manager.login("a@x.com", "pw")
    assert manager.state is SessionState.logged_out
    assert manager.session is None
